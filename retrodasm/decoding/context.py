from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import TableError
from ..tokens import TAddr, Token, TInstr, TSep, TText, asm_str
from ..xref import FORMAT_ADDR, RefKind, SymbolTable
from .reader import StreamCursor

# Maximum depth of the deferred-unit stack.
STACK_DEPTH = 16

# Longest text a single instruction may produce.
OUTPUT_LIMIT = 256


class DeferredStack:
    """Bounded LIFO bridging units fetched during dispatch to later renderers."""

    def __init__(self, depth: int = STACK_DEPTH) -> None:
        self.depth = depth
        self._items: List[int] = []

    def push(self, unit: int) -> None:
        if len(self._items) >= self.depth:
            raise TableError("deferred unit stack overflow")
        self._items.append(unit)

    def pop(self) -> int:
        if not self._items:
            raise TableError("deferred unit stack underflow")
        return self._items.pop()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)


class OutputCursor:
    """Bounded, write-only token buffer for one instruction."""

    def __init__(self, limit: int = OUTPUT_LIMIT) -> None:
        self.limit = limit
        self.parts: List[Token] = []
        self._length = 0

    def _append(self, token: Token) -> None:
        self._length += len(token)
        if self._length > self.limit:
            raise TableError(f"instruction text exceeds {self.limit} characters")
        self.parts.append(token)

    def mnemonic(self, name: str, width: int) -> None:
        self._append(TInstr(name, width))

    def write(self, template: str, *args: Any) -> None:
        text = template % args if args else template
        if text:
            self._append(TText(text))

    def sep(self, text: str = ", ") -> None:
        self._append(TSep(text))

    def addr(self, token: TAddr) -> None:
        self._append(token)

    def text(self) -> str:
        return asm_str(self.parts)


@dataclass
class DecodeContext:
    """
    All mutable state of one `decode_one` call.

    `insn_addr` is the address of the first unit of the instruction and is the
    source address of every reference recorded while decoding it.
    `prefix_state` holds architecture-defined prefix effects (segment
    overrides and the like); a later prefix of the same kind overwrites an
    earlier one. Text stored under ``lead`` is written ahead of the mnemonic.
    """

    cursor: StreamCursor
    symbols: SymbolTable
    mnemonic_width: int
    insn_addr: int = 0
    out: OutputCursor = field(default_factory=OutputCursor)
    stack: DeferredStack = field(default_factory=DeferredStack)
    prefix_state: Dict[str, Any] = field(default_factory=dict)

    # ---- stream ----

    def fetch(self) -> int:
        return self.cursor.fetch()

    def peek(self) -> int:
        return self.cursor.peek()

    @property
    def addr(self) -> int:
        """Address of the next unread byte."""

        return self.cursor.addr

    # ---- output ----

    def mnemonic(self, name: str) -> None:
        # Text a prefix placed ahead of the mnemonic, e.g. "REP ".
        lead = self.take_prefix("lead")
        if lead:
            self.out.write(lead)
        self.out.mnemonic(name, self.mnemonic_width)

    def operand(self, template: str, *args: Any) -> None:
        self.out.write(template, *args)

    def comma(self) -> None:
        self.out.sep(", ")

    def address(
        self,
        value: int,
        fmt: str = FORMAT_ADDR,
        xref: RefKind = RefKind.NONE,
        wrap: str = "%s",
    ) -> None:
        """Write ``value`` (or its label) and record a reference to it."""

        before, _, after = wrap.partition("%s")
        self.operand(before)
        self.out.addr(TAddr(value, fmt % value, self.symbols.lookup_label(value)))
        self.operand(after)
        self.symbols.record_reference(value, self.insn_addr, xref)

    def text(self) -> str:
        return self.out.text()

    # ---- deferred units ----

    def push(self, unit: int) -> None:
        self.stack.push(unit)

    def pop(self) -> int:
        return self.stack.pop()

    # ---- prefixes ----

    def take_prefix(self, key: str, default: Optional[Any] = None) -> Any:
        """Consume a prefix effect so it applies to one operand only."""

        return self.prefix_state.pop(key, default)
