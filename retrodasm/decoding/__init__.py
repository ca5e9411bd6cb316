from .context import DecodeContext, DeferredStack, OutputCursor
from .engine import DecodedInsn, decode_one, walk_table
from .reader import StreamCursor
from .rules import (
    DecodeTable,
    Insn,
    Mask,
    MaskNext,
    MemMod,
    Prefix,
    PushTable,
    Range,
    SubTable,
    Undef,
    table,
)

__all__ = [
    "DecodeContext",
    "DecodeTable",
    "DecodedInsn",
    "DeferredStack",
    "Insn",
    "Mask",
    "MaskNext",
    "MemMod",
    "OutputCursor",
    "Prefix",
    "PushTable",
    "Range",
    "StreamCursor",
    "SubTable",
    "Undef",
    "decode_one",
    "table",
    "walk_table",
]
