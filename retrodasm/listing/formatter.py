"""Render a `ListingPlan` as an assembler-style listing."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, TextIO

from ..arch.profile import Architecture
from ..decoding.engine import decode_one
from ..decoding.reader import StreamCursor
from ..tracing import ListingTracer
from ..xref import FORMAT_ADDR, RefKind, SymbolTable
from .commands import ListingPlan, Segment, SegmentMode

logger = logging.getLogger(__name__)

BYTES_PER_LINE = 16
ITEMS_PER_LINE = 8
COL_LINECOMMENT = 60

RULE = "-" * 65
PROC_RULE = "-" * 64
XREF_RULE = "-" * 27

DATA_PAD = "DB      "
WORD_PAD = "DW      "


def _printable(byte: int) -> bool:
    return 0x20 <= byte < 0x7F


def _comment_lines(text: str) -> str:
    return "; " + text.replace("\n", "\n; ")


def format_xref_report(symbols: SymbolTable) -> str:
    """One block per referenced address, references in arrival order."""

    lines: List[str] = [XREF_RULE, ""]
    for entry in symbols.targets():
        if not entry.refs:
            continue
        for index, ref in enumerate(entry.refs):
            head = (FORMAT_ADDR % entry.address + ": ") if index == 0 else " " * 6
            line = f"{head}{ref.kind.tag:<6} @ {FORMAT_ADDR % ref.source}"
            if index == 0 and entry.label:
                line += f"   ({entry.label})"
            lines.append(line)
        lines.append("")
    lines.extend([XREF_RULE, ""])
    return "\n".join(lines) + "\n"


class ListingWriter:
    def __init__(
        self,
        arch: Architecture,
        plan: ListingPlan,
        symbols: SymbolTable,
        data: bytes,
        *,
        check_stack: bool = True,
        tracer: Optional[ListingTracer] = None,
    ) -> None:
        self.arch = arch
        self.plan = plan
        self.symbols = symbols
        self.data = data
        self.check_stack = check_stack
        self.tracer = tracer or ListingTracer()
        self.cursor: StreamCursor = arch.new_cursor(data, plan.start_address)
        self.unknown = 0
        self._out: List[str] = []

    # ---- output helpers ----

    def _emit(self, text: str = "") -> None:
        self._out.append(text)

    def _addr_prefix(self, address: int) -> str:
        label = self.symbols.lookup_label(address)
        if label:
            self._emit(f"{label}:")
        return "    " + FORMAT_ADDR % address + ":    "

    def _block_comment(self, address: int) -> None:
        text = self.plan.block_comments.get(address)
        if text is not None:
            self._emit(_comment_lines(text))

    def _with_line_comment(self, line: str, address: int) -> str:
        text = self.plan.line_comments.get(address)
        if text is None:
            return line.rstrip()
        pad = max(1, COL_LINECOMMENT - len(line))
        return line + " " * pad + _comment_lines(text)

    def _banner(self) -> None:
        profile = self.arch.profile
        self._emit(f"    {profile.name} -- {profile.description} Disassembler --")
        self._emit(RULE)
        self._emit(f"    Input file       : {self.plan.input_file}")
        self._emit(RULE)
        self._emit()
        self._emit(f'   Processing "{self.plan.input_file}" ({len(self.data)} bytes)')
        self._emit(f"   Disassembly start address: 0x{self.plan.start_address:04X}")
        self._emit(f"   String terminator: 0x{self.plan.terminator:02x}")

    # ---- segment modes ----

    def _more(self, end: Optional[int]) -> bool:
        if self.cursor.at_end():
            return False
        return end is None or self.cursor.addr < end

    def _code(self, end: Optional[int]) -> None:
        width = self.arch.profile.max_insn_length
        while self._more(end):
            address = self.cursor.addr
            self._block_comment(address)
            prefix = self._addr_prefix(address)
            insn = decode_one(self.cursor, self.arch, self.symbols, check_stack=self.check_stack)
            raw = "".join(f"{b:02X} " for b in insn.raw).ljust(width * 3)
            self._emit(self._with_line_comment(prefix + raw + "   " + insn.text, address))
            if not insn.found:
                self.unknown += 1
                self.tracer.counter("unknown opcodes", self.unknown)
            with self.tracer.slice("Instructions", insn.text.split(" ", 1)[0] or "?", {"addr": address}):
                self.tracer.advance(insn.length)

    def _bytes(self, end: Optional[int]) -> None:
        while self._more(end):
            address = self.cursor.addr
            row = []
            while len(row) < BYTES_PER_LINE and self._more(end):
                row.append(self.cursor.read_u8())
            hexes = "".join(f"{b:02X} " for b in row).ljust(BYTES_PER_LINE * 3)
            gutter = "".join(chr(b) if _printable(b) else "." for b in row)
            prefix = self._addr_prefix(address)
            self._emit(prefix + DATA_PAD + hexes + "      " + gutter)

    def _strings(self, end: Optional[int]) -> None:
        while self._more(end):
            prefix = self._addr_prefix(self.cursor.addr)
            chars = []
            while self._more(end):
                byte = self.cursor.read_u8()
                if byte == self.plan.terminator:
                    break
                chars.append(chr(byte) if _printable(byte) else f"\\{byte:02X}")
            self._emit(prefix + DATA_PAD + "'" + "".join(chars) + "'")

    def _read_word(self) -> int:
        source = self.cursor.addr
        value = self.cursor.read_word()
        self.symbols.record_reference(value, source, RefKind.TABLE)
        return value

    def _words(self, end: Optional[int]) -> None:
        while self._more(end):
            prefix = self._addr_prefix(self.cursor.addr)
            row = []
            while len(row) < ITEMS_PER_LINE and self._more(end):
                row.append(f"{self._read_word():04X}")
            self._emit(prefix + WORD_PAD + " ".join(row))

    def _vectors(self, end: Optional[int]) -> None:
        while self._more(end):
            prefix = self._addr_prefix(self.cursor.addr)
            value = self._read_word()
            self._emit(prefix + WORD_PAD + self.symbols.format_address(value))

    def _chars(self, end: Optional[int]) -> None:
        while self._more(end):
            prefix = self._addr_prefix(self.cursor.addr)
            row = []
            while len(row) < ITEMS_PER_LINE and self._more(end):
                byte = self.cursor.read_u8()
                row.append(f"'{chr(byte)}'," if _printable(byte) else f"{byte:02X},")
            self._emit(prefix + DATA_PAD + "".join(row))

    def _procedure(self, segment: Segment) -> None:
        address = self.cursor.addr
        if address in self.plan.block_comments:
            return
        name = segment.name or self.symbols.lookup_label(address) or ""
        self._emit(PROC_RULE)
        self._emit(f"        Function: {name}")
        self._emit()

    # ---- driver ----

    def _segments(self) -> Iterable[tuple]:
        segments = self.plan.segments
        for index, segment in enumerate(segments):
            end = segments[index + 1].address if index + 1 < len(segments) else None
            yield segment, end

    def render(self) -> str:
        self._out = []
        self._banner()
        previous: Optional[SegmentMode] = None
        handlers = {
            SegmentMode.CODE: self._code,
            SegmentMode.BYTES: self._bytes,
            SegmentMode.STRINGS: self._strings,
            SegmentMode.WORDS: self._words,
            SegmentMode.VECTORS: self._vectors,
            SegmentMode.CHARS: self._chars,
        }
        for segment, end in self._segments():
            if segment.mode is SegmentMode.END:
                break
            mode = SegmentMode.CODE if segment.mode is SegmentMode.PROCS else segment.mode
            if mode is not SegmentMode.CODE or previous is not SegmentMode.CODE:
                self._emit()
            logger.debug("segment %s at %04X", segment.mode.name, segment.address)
            with self.tracer.slice(
                "Segments", segment.mode.name.lower(), {"start": segment.address}
            ):
                if segment.mode is SegmentMode.PROCS:
                    self._procedure(segment)
                if mode is not SegmentMode.CODE:
                    self._block_comment(self.cursor.addr)
                handlers[mode](end)
            previous = mode
        if self.unknown:
            logger.info("%d unrecognised instructions", self.unknown)
        self._emit()
        self._emit()
        self._emit("XREFS :")
        self._emit()
        return "\n".join(self._out) + "\n" + format_xref_report(self.symbols)

    def write(self, out: TextIO) -> None:
        out.write(self.render())


__all__ = ["ListingWriter", "format_xref_report"]
