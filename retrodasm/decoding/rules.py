"""Decode table rule variants.

A decode table is an ordered tuple of rules. The engine tries them strictly
in declaration order and the first rule whose predicate holds wins, so
overlapping bitmask rules are resolved by position, never by specificity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, FrozenSet, Iterable, Iterator, Tuple, Union

from ..xref import RefKind

if TYPE_CHECKING:
    from .operands import OperandRenderer


# Opcodes whose follow-on byte carries a combined memory modifier.
MEMMOD_OPCODES: FrozenSet[int] = frozenset({0x06, 0x0A, 0x16, 0x17})
MEMMOD_MASK = 0x8F


@dataclass(frozen=True, slots=True)
class Insn:
    """Matches a single unit value."""

    mnemonic: str
    render: "OperandRenderer"
    opc: int
    xref: RefKind = RefKind.NONE

    def matches(self, opc: int) -> bool:
        return opc == self.opc


@dataclass(frozen=True, slots=True)
class Range:
    """Matches any unit between `lo` and `hi` inclusive."""

    mnemonic: str
    render: "OperandRenderer"
    lo: int
    hi: int
    xref: RefKind = RefKind.NONE

    def matches(self, opc: int) -> bool:
        return self.lo <= opc <= self.hi


@dataclass(frozen=True, slots=True)
class Mask:
    """Matches when `opc & mask == value`."""

    mnemonic: str
    render: "OperandRenderer"
    mask: int
    value: int
    xref: RefKind = RefKind.NONE

    def matches(self, opc: int) -> bool:
        return opc & self.mask == self.value


@dataclass(frozen=True, slots=True)
class MaskNext:
    """Matches `opc` exactly, then tests mask/value against the following unit."""

    mnemonic: str
    render: "OperandRenderer"
    opc: int
    mask: int
    value: int
    xref: RefKind = RefKind.NONE

    def matches_next(self, peeked: int) -> bool:
        return peeked & self.mask == self.value


@dataclass(frozen=True, slots=True)
class MemMod:
    """One addressing-mode family of a combined memory-modifier opcode group."""

    mnemonic: str
    render: "OperandRenderer"
    mode: int
    xref: RefKind = RefKind.NONE
    opcodes: FrozenSet[int] = MEMMOD_OPCODES
    mask: int = MEMMOD_MASK

    def matches_next(self, peeked: int) -> bool:
        return peeked & self.mask == self.mode


@dataclass(frozen=True, slots=True)
class SubTable:
    """Consume one more unit and continue in `table`."""

    table: "DecodeTable"
    opc: int


@dataclass(frozen=True, slots=True)
class PushTable:
    """Push `count` further units onto the deferred stack, then continue in `table`."""

    table: "DecodeTable"
    opc: int
    count: int


@dataclass(frozen=True, slots=True)
class Prefix:
    """Apply a side effect, consume the next unit and rescan the same table."""

    apply: "OperandRenderer"
    opc: int
    xref: RefKind = RefKind.NONE


@dataclass(frozen=True, slots=True)
class Undef:
    """Explicit "no instruction here"; stops the scan."""

    opc: int


Rule = Union[Insn, Range, Mask, MaskNext, MemMod, SubTable, PushTable, Prefix, Undef]

# Rules that render an instruction once their predicate holds.
MATCHING_RULES = (Insn, Range, Mask)


@dataclass(frozen=True)
class DecodeTable:
    name: str
    rules: Tuple[Rule, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __repr__(self) -> str:
        return f"DecodeTable({self.name!r}, {len(self.rules)} rules)"


def table(name: str, *groups: Union[Rule, Iterable[Rule]]) -> DecodeTable:
    """Build a table from rules and iterables of rules, keeping their order."""

    rules = []
    for group in groups:
        if isinstance(group, (list, tuple)) or hasattr(group, "__next__"):
            rules.extend(group)
        else:
            rules.append(group)
    return DecodeTable(name, tuple(rules))


__all__ = [
    "DecodeTable",
    "Insn",
    "MATCHING_RULES",
    "MEMMOD_MASK",
    "MEMMOD_OPCODES",
    "Mask",
    "MaskNext",
    "MemMod",
    "Prefix",
    "PushTable",
    "Range",
    "Rule",
    "SubTable",
    "Undef",
    "table",
]
