"""Exception hierarchy shared by the decoder, symbol table and loader."""

from __future__ import annotations

from typing import Optional


class DasmError(Exception):
    """Base class for fatal disassembler errors."""


class ConfigurationError(DasmError):
    """The label set or command file is inconsistent; decoding cannot start."""


class DuplicateLabelError(ConfigurationError):
    def __init__(self, address: int, existing: str, new: str) -> None:
        super().__init__(
            f"multiple labels for same address {address:04X}: "
            f"'{existing}' and '{new}'"
        )
        self.address = address
        self.existing = existing
        self.new = new


class BufferTooShort(DasmError):
    """Raised when attempting to read past the end of the input stream."""

    def __init__(self, address: Optional[int] = None) -> None:
        if address is None:
            message = "run out of input file"
        else:
            message = f"run out of input file at {address:04X}"
        super().__init__(message)
        self.address = address


class TableError(DasmError):
    """A decode table or renderer broke an engine invariant."""
