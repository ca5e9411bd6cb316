"""Retargetable table-driven disassembler."""

from .decoding import DecodedInsn, StreamCursor, decode_one
from .errors import BufferTooShort, ConfigurationError, DasmError, DuplicateLabelError, TableError
from .xref import RefKind, SymbolTable

__version__ = "0.3.0"

__all__ = [
    "BufferTooShort",
    "ConfigurationError",
    "DasmError",
    "DecodedInsn",
    "DuplicateLabelError",
    "RefKind",
    "StreamCursor",
    "SymbolTable",
    "TableError",
    "decode_one",
]
