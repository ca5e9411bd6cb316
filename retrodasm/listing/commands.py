"""Command-file loader.

A command file drives one listing run: it names the input image, binds
labels, attaches comments and splits the image into segments, each of which
is rendered in one mode (code, bytes, strings, ...). Every line starts with a
one-letter command::

    f<name>            input file, relative to the command file
    i<name>            include another command file in place
    t<hh>              string terminator byte
    r<ssss>,<eeee>     cross-reference range
    c a b s w v p e    segment start (+ address and optional name)
    l<addr> [name]     label; without a name an auto-label is generated
    k<addr> text       line comment
    n<addr> [text]     block note, continued up to a line starting with '.'

Blank lines and lines starting with ``#`` are ignored.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput, VisitError

from ..errors import ConfigurationError
from ..xref import SymbolTable

logger = logging.getLogger(__name__)

grammar_path = os.path.join(os.path.dirname(__file__), "commands.lark")
with open(grammar_path, "r") as f:
    command_grammar = f.read()

command_parser = Lark(command_grammar, parser="earley", maybe_placeholders=False)

# Nested includes deeper than this are assumed to be a cycle.
MAX_INCLUDE_DEPTH = 16


class SegmentMode(Enum):
    CODE = "c"
    BYTES = "b"
    STRINGS = "s"
    END = "e"
    WORDS = "w"
    CHARS = "a"
    PROCS = "p"
    VECTORS = "v"


@dataclass
class Segment:
    address: int
    mode: SegmentMode
    name: Optional[str] = None


@dataclass
class ListingPlan:
    input_file: Optional[Path] = None
    terminator: int = 0x00
    segments: List[Segment] = field(default_factory=list)
    line_comments: Dict[int, str] = field(default_factory=dict)
    block_comments: Dict[int, str] = field(default_factory=dict)
    sources: List[Path] = field(default_factory=list)

    def add_segment(self, segment: Segment) -> None:
        """Insert keeping address order; equal addresses keep file order."""

        keys = [s.address for s in self.segments]
        self.segments.insert(bisect_right(keys, segment.address), segment)

    @property
    def start_address(self) -> int:
        if not self.segments:
            raise ConfigurationError("empty list file")
        return self.segments[0].address


@dataclass(frozen=True)
class Directive:
    command: str
    address: Optional[int] = None
    text: Optional[str] = None
    end: Optional[int] = None


def _hex(token: Token) -> int:
    return int(str(token), 16)


def _optional_text(items: List[Any], index: int) -> Optional[str]:
    return str(items[index]) if len(items) > index else None


class CommandTransformer(Transformer):
    def segment(self, items: List[Token]) -> Directive:
        return Directive(str(items[0]), _hex(items[1]), _optional_text(items, 2))

    def label(self, items: List[Token]) -> Directive:
        return Directive("l", _hex(items[0]), _optional_text(items, 1))

    def comment(self, items: List[Token]) -> Directive:
        return Directive("k", _hex(items[0]), _optional_text(items, 1))

    def note(self, items: List[Token]) -> Directive:
        return Directive("n", _hex(items[0]), _optional_text(items, 1))

    def xref_range(self, items: List[Token]) -> Directive:
        return Directive("r", _hex(items[0]), end=_hex(items[1]))

    def terminator(self, items: List[Token]) -> Directive:
        return Directive("t", _hex(items[0]))

    def input_file(self, items: List[Token]) -> Directive:
        return Directive("f", text=str(items[0]))

    def include(self, items: List[Token]) -> Directive:
        return Directive("i", text=str(items[0]))


_transformer = CommandTransformer()


def parse_command(line: str) -> Directive:
    """Parse one stripped, non-empty command line."""

    return _transformer.transform(command_parser.parse(line))


class _Loader:
    def __init__(self, symbols: SymbolTable, plan: ListingPlan) -> None:
        self.symbols = symbols
        self.plan = plan

    def load(self, path: Path, depth: int = 0) -> None:
        if depth > MAX_INCLUDE_DEPTH:
            raise ConfigurationError(f"{path}: includes nested too deeply")
        try:
            text = path.read_text()
        except OSError as exc:
            raise ConfigurationError(
                f'failed to open list command file "{path}": {exc.strerror}'
            ) from exc
        self.plan.sources.append(path)
        if depth:
            logger.info("including %s", path)

        note: Optional[Directive] = None
        note_lines: List[str] = []
        for lineno, raw in enumerate(text.splitlines(), start=1):
            if note is not None:
                if raw.startswith("."):
                    self._add_comment(
                        self.plan.block_comments, note.address, "\n".join(note_lines), path, lineno
                    )
                    note = None
                else:
                    note_lines.append(raw)
                continue

            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            directive = self._parse(line, path, lineno)
            logger.debug("%s:%d: %s", path, lineno, directive)

            if directive.command == "n":
                note = directive
                note_lines = [directive.text] if directive.text else []
            elif directive.command == "i":
                self.load(self._resolve(path, directive.text), depth + 1)
            else:
                self._apply(directive, path, lineno)

        if note is not None:
            raise ConfigurationError(f"{path}: note at {note.address:04X} is not closed with '.'")

    def _parse(self, line: str, path: Path, lineno: int) -> Directive:
        try:
            return parse_command(line)
        except (UnexpectedInput, VisitError) as exc:
            raise ConfigurationError(f"{path}:{lineno}: malformed command '{line}'") from exc

    @staticmethod
    def _resolve(base: Path, name: Optional[str]) -> Path:
        target = Path(name or "")
        if target.is_absolute():
            return target
        return base.parent / target

    def _apply(self, directive: Directive, path: Path, lineno: int) -> None:
        cmd = directive.command
        if cmd == "f":
            self.plan.input_file = self._resolve(path, directive.text)
        elif cmd == "t":
            if directive.address > 0xFF:
                raise ConfigurationError(
                    f"{path}:{lineno}: string terminator {directive.address:X} is not a byte"
                )
            self.plan.terminator = directive.address
        elif cmd == "r":
            self.symbols.set_range(directive.address, directive.end)
        elif cmd == "l":
            self._label(directive.address, directive.text, path, lineno)
        elif cmd == "k":
            if directive.text:
                self._add_comment(
                    self.plan.line_comments, directive.address, directive.text, path, lineno
                )
        else:
            mode = SegmentMode(cmd)
            if directive.text:
                self._label(directive.address, directive.text, path, lineno)
            elif mode is SegmentMode.PROCS:
                self.symbols.auto_label(directive.address)
            self.plan.add_segment(Segment(directive.address, mode, directive.text))

    def _label(self, address: int, name: Optional[str], path: Path, lineno: int) -> None:
        if not name:
            self.symbols.auto_label(address)
            return
        try:
            self.symbols.bind_label(address, name)
        except ConfigurationError as exc:
            raise ConfigurationError(f"{path}:{lineno}: {exc}") from exc

    def _add_comment(
        self, comments: Dict[int, str], address: int, text: str, path: Path, lineno: int
    ) -> None:
        if not self.symbols.in_range(address):
            return
        if address in comments:
            raise ConfigurationError(
                f"{path}:{lineno}: multiple comments for same address {address:04X}"
            )
        comments[address] = text


def load_command_file(
    path: Union[str, Path], symbols: SymbolTable
) -> ListingPlan:
    """Read ``path`` (and its includes), binding labels into ``symbols``."""

    plan = ListingPlan()
    _Loader(symbols, plan).load(Path(path))
    if plan.input_file is None:
        raise ConfigurationError("no input file specified")
    return plan


__all__ = [
    "Directive",
    "ListingPlan",
    "Segment",
    "SegmentMode",
    "load_command_file",
    "parse_command",
]
