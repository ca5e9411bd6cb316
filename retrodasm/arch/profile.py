from __future__ import annotations

from dataclasses import dataclass

from ..decoding.reader import StreamCursor
from ..decoding.rules import DecodeTable


@dataclass(frozen=True)
class ArchProfile:
    name: str
    description: str
    max_insn_length: int
    mnemonic_width: int
    msb_first: bool = False
    unit_width: int = 1


@dataclass(frozen=True)
class Architecture:
    """A profile together with the root decode table."""

    profile: ArchProfile
    root: DecodeTable

    @property
    def name(self) -> str:
        return self.profile.name

    def new_cursor(self, data: bytes, address: int = 0) -> StreamCursor:
        return StreamCursor(
            data,
            addr=address,
            unit_width=self.profile.unit_width,
            msb_first=self.profile.msb_first,
            max_insn_length=self.profile.max_insn_length,
        )
