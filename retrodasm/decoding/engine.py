"""Table walker and the single-instruction entry point."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Optional

from ..errors import TableError
from ..xref import SymbolTable
from .context import DecodeContext
from .reader import StreamCursor
from .rules import (
    MATCHING_RULES,
    DecodeTable,
    MaskNext,
    MemMod,
    Prefix,
    PushTable,
    SubTable,
    Undef,
)

if TYPE_CHECKING:
    from ..arch.profile import Architecture

logger = logging.getLogger(__name__)

UNKNOWN_MNEMONIC = "???"


@dataclass(frozen=True)
class DecodedInsn:
    text: str
    address: int
    next_address: int
    raw: bytes
    found: bool

    @property
    def length(self) -> int:
        return self.next_address - self.address


def _emit(ctx: DecodeContext, rule, opc: int) -> None:
    ctx.mnemonic(rule.mnemonic)
    rule.render(ctx, opc, rule.xref)


def walk_table(ctx: DecodeContext, table: DecodeTable, opc: int) -> bool:
    """Match ``opc`` against ``table``, following sub-tables and prefixes.

    Returns True when a rule rendered an instruction. Sub-table dispatch and
    prefix restarts are handled by looping, so the Python stack depth does not
    depend on the length of a prefix chain.
    """
    current = table
    while True:
        peeked: Optional[int] = None
        for rule in current.rules:
            if isinstance(rule, SubTable):
                if opc == rule.opc:
                    opc = ctx.fetch()
                    current = rule.table
                    break
            elif isinstance(rule, PushTable):
                if opc == rule.opc:
                    for _ in range(rule.count):
                        ctx.push(ctx.fetch())
                    logger.debug("pushed %d units for %s", rule.count, rule.table.name)
                    opc = ctx.fetch()
                    current = rule.table
                    break
            elif isinstance(rule, Undef):
                if opc == rule.opc:
                    return False
            elif isinstance(rule, MATCHING_RULES):
                if rule.matches(opc):
                    _emit(ctx, rule, opc)
                    return True
            elif isinstance(rule, MaskNext):
                if opc == rule.opc:
                    if peeked is None:
                        peeked = ctx.peek()
                    if rule.matches_next(peeked):
                        _emit(ctx, rule, opc)
                        return True
            elif isinstance(rule, MemMod):
                if opc in rule.opcodes:
                    if peeked is None:
                        peeked = ctx.peek()
                    if rule.matches_next(peeked):
                        _emit(ctx, rule, opc)
                        return True
            elif isinstance(rule, Prefix):
                if opc == rule.opc:
                    logger.debug("prefix %02X at %04X", opc, ctx.insn_addr)
                    rule.apply(ctx, opc, rule.xref)
                    opc = ctx.fetch()
                    break
            else:
                raise TableError(f"unknown rule {rule!r} in {current.name}")
        else:
            return False


def decode_one(
    cursor: StreamCursor,
    arch: "Architecture",
    symbols: SymbolTable,
    *,
    check_stack: bool = True,
) -> DecodedInsn:
    """Decode the instruction at the cursor position.

    An unrecognised unit sequence is not an error: the text is ``???`` and
    only the units the dispatch chain fetched are consumed.
    """
    address = cursor.current_address()
    cursor.begin_instruction()
    ctx = DecodeContext(cursor, symbols, arch.profile.mnemonic_width, insn_addr=address)

    opc = ctx.fetch()
    found = walk_table(ctx, arch.root, opc)
    if not found:
        logger.debug("no match at %04X", address)
        ctx.mnemonic(UNKNOWN_MNEMONIC)

    # A failed match may abandon pushed units; a rendered one must not.
    if check_stack and found and len(ctx.stack):
        raise TableError(
            f"{len(ctx.stack)} deferred unit(s) left unconsumed at {address:04X}"
        )

    return DecodedInsn(
        text=ctx.text().rstrip(),
        address=address,
        next_address=cursor.current_address(),
        raw=cursor.captured(),
        found=found,
    )
