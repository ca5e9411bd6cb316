"""Symbol and cross-reference database.

Labels are bound by the command-file loader before decoding starts. During
decoding the operand renderers only read labels and append reference records,
so label substitution never has to resolve forward references.
"""

from __future__ import annotations

from bisect import bisect_left, insort
from dataclasses import dataclass, field
from enum import IntEnum
import logging
from typing import Dict, Iterator, List, Optional

from .errors import DuplicateLabelError

logger = logging.getLogger(__name__)

# Prefix reserved for labels synthesised by the loader.
GEN_LABEL_PREFIX = "___"

# Universal address format.
FORMAT_ADDR = "%04X"


class RefKind(IntEnum):
    """Why an address was referenced."""

    NONE = -1
    JUMP = 0
    CALL = 1
    IMM = 2
    TABLE = 3
    DIRECT = 4
    DATA = 5
    PTR = 6
    REG = 7
    IO = 8

    @property
    def tag(self) -> str:
        return _REF_TAGS[self]


_REF_TAGS: Dict[RefKind, str] = {
    RefKind.NONE: "",
    RefKind.JUMP: "Jump",
    RefKind.CALL: "Call",
    RefKind.IMM: "Imm",
    RefKind.TABLE: "Table",
    RefKind.DIRECT: "Direct",
    RefKind.DATA: "Data",
    RefKind.PTR: "Ptr",
    RefKind.REG: "Reg",
    RefKind.IO: "IO",
}


@dataclass(frozen=True, slots=True)
class Reference:
    source: int
    kind: RefKind


@dataclass(slots=True)
class XrefEntry:
    address: int
    label: Optional[str] = None
    auto: bool = False
    refs: List[Reference] = field(default_factory=list)


def is_auto_label(name: str) -> bool:
    return name.startswith(GEN_LABEL_PREFIX)


class SymbolTable:
    """Address-ordered map of labels and incoming references."""

    def __init__(self, low: Optional[int] = None, high: Optional[int] = None):
        self._entries: Dict[int, XrefEntry] = {}
        self._order: List[int] = []
        self.low = low
        self.high = high

    # ---- range of interest ----

    def set_range(self, low: Optional[int], high: Optional[int]) -> None:
        self.low = low
        self.high = high

    def in_range(self, address: int) -> bool:
        if self.low is not None and address < self.low:
            return False
        if self.high is not None and address > self.high:
            return False
        return True

    # ---- storage ----

    def _entry(self, address: int) -> XrefEntry:
        entry = self._entries.get(address)
        if entry is None:
            entry = XrefEntry(address)
            self._entries[address] = entry
            insort(self._order, address)
        return entry

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, address: object) -> bool:
        return address in self._entries

    # ---- labels ----

    def bind_label(self, address: int, name: str, *, auto: bool = False) -> None:
        """Attach ``name`` to ``address``.

        A second label at one address replaces the first only when the first
        was auto-generated; anything else is a configuration error.
        """
        if not self.in_range(address):
            logger.debug("label %s at %04X outside xref range, ignored", name, address)
            return
        auto = auto or is_auto_label(name)
        entry = self._entry(address)
        if entry.label is not None:
            if not entry.auto:
                raise DuplicateLabelError(address, entry.label, name)
            logger.debug("replacing auto-label %s with %s", entry.label, name)
        entry.label = name
        entry.auto = auto

    def auto_label(self, address: int) -> Optional[str]:
        """Name ``address`` with a generated label unless it already has one."""

        existing = self.lookup_label(address)
        if existing is not None:
            return existing
        if not self.in_range(address):
            return None
        name = GEN_LABEL_PREFIX + FORMAT_ADDR % address
        self.bind_label(address, name, auto=True)
        logger.debug("auto-label %s", name)
        return name

    def lookup_label(self, address: int) -> Optional[str]:
        entry = self._entries.get(address)
        if entry is None:
            return None
        return entry.label

    def format_address(self, address: int, fmt: str = FORMAT_ADDR) -> str:
        """Return the label for ``address`` or ``fmt % address``."""

        label = self.lookup_label(address)
        if label is not None:
            return label
        return fmt % address

    # ---- references ----

    def record_reference(self, target: int, source: int, kind: RefKind) -> None:
        if kind == RefKind.NONE:
            return
        if not self.in_range(target):
            return
        self._entry(target).refs.append(Reference(source, RefKind(kind)))

    def references_to(self, address: int) -> List[Reference]:
        entry = self._entries.get(address)
        if entry is None:
            return []
        return list(entry.refs)

    def targets(self, start: Optional[int] = None) -> Iterator[XrefEntry]:
        """Yield every entry in ascending address order."""

        index = 0 if start is None else bisect_left(self._order, start)
        for address in self._order[index:]:
            yield self._entries[address]

    def labels(self) -> Dict[int, str]:
        return {
            entry.address: entry.label
            for entry in self.targets()
            if entry.label is not None
        }


__all__ = [
    "FORMAT_ADDR",
    "GEN_LABEL_PREFIX",
    "RefKind",
    "Reference",
    "SymbolTable",
    "XrefEntry",
    "is_auto_label",
]
