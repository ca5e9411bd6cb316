"""Zilog Z80.

The base page dispatches to four sub-pages: CB (bit operations), ED
(extended operations) and the DD/FD index-register pages. The DD CB and
FD CB encodings put the displacement byte before the final opcode, so the
index pages reach their bit tables through a deferred push and the operand
renderers pop the displacement back off the stack.
"""

from __future__ import annotations

from typing import List, Tuple

from ..decoding.context import DecodeContext
from ..decoding.operands import literal, none, rel8, seq
from ..decoding.rules import (
    DecodeTable,
    Insn,
    Mask,
    PushTable,
    Range,
    Rule,
    SubTable,
    Undef,
    table,
)
from ..xref import RefKind
from .profile import Architecture, ArchProfile

PROFILE = ArchProfile(
    name="z80",
    description="Zilog Z80",
    max_insn_length=4,
    mnemonic_width=8,
    msb_first=False,
    unit_width=1,
)

NUM8 = "$%02X"
NUM16 = "$%04X"

X = RefKind

REGS = ("B", "C", "D", "E", "H", "L", "(HL)", "A")
PAIRS = ("BC", "DE", "HL", "SP")
CONDS = ("NZ", "Z", "NC", "C", "PO", "PE", "P", "M")

# ---- operands ----


def _reg(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    """xxxx_xRRR"""
    ctx.operand("%s", REGS[opc & 0x07])


def _reg2(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    """xxRR_Rxxx"""
    _reg(ctx, opc >> 3, xref)


def _rpair(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.operand("%s", PAIRS[(opc >> 4) & 0x03])


def _indrpair(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.operand("(%s)", PAIRS[(opc >> 4) & 0x03])


def _bit(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.operand("%d", (opc >> 3) & 0x07)


def _cond(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.operand("%s", CONDS[(opc >> 3) & 0x07])


def _condalt(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    # JR only encodes the first four conditions.
    _cond(ctx, opc & ~0x20, xref)


def _rst(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.operand(NUM8, opc & 0x38)


def _imm8(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.operand("#" + NUM8, ctx.cursor.read_u8())


def _imm16(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.address(ctx.cursor.read_word(), "#" + NUM16, xref)


def _addr16(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.address(ctx.cursor.read_word(), NUM16, xref)


def _mem16(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.address(ctx.cursor.read_word(), NUM16, xref, wrap="(%s)")


def _mem8(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.address(ctx.cursor.read_u8(), NUM8, xref, wrap="(%s)")


def _index_offset(ctx: DecodeContext, index: str, disp: int) -> None:
    if disp & 0x80:
        ctx.operand("(%s-" + NUM8 + ")", index, 0x100 - disp)
    else:
        ctx.operand("(%s+" + NUM8 + ")", index, disp)


def _ixoff(index: str):
    def render(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
        _index_offset(ctx, index, ctx.cursor.read_u8())

    return render


def _ixoff_deferred(index: str):
    def render(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
        _index_offset(ctx, index, ctx.pop() & 0xFF)

    return render


_rel8 = rel8(NUM16)
_a = literal("A")

# ---- pages ----

PAGE_BITS = table(
    "z80.cb",
    Mask("RLC", _reg, 0xF8, 0x00, X.REG),
    Mask("RRC", _reg, 0xF8, 0x08, X.REG),
    Mask("RL", _reg, 0xF8, 0x10, X.REG),
    Mask("RR", _reg, 0xF8, 0x18, X.REG),
    Mask("SLA", _reg, 0xF8, 0x20, X.REG),
    Mask("SRA", _reg, 0xF8, 0x28, X.REG),
    Mask("SLL", _reg, 0xF8, 0x30, X.REG),
    Mask("SRL", _reg, 0xF8, 0x38, X.REG),
    Mask("BIT", seq(_bit, _reg), 0xC0, 0x40, X.REG),
    Mask("RES", seq(_bit, _reg), 0xC0, 0x80, X.REG),
    Mask("SET", seq(_bit, _reg), 0xC0, 0xC0, X.REG),
)

PAGE_EXTD = table(
    "z80.ed",
    Mask("ADC", seq(literal("HL"), _rpair), 0xCF, 0x4A),
    Mask("SBC", seq(literal("HL"), _rpair), 0xCF, 0x42),
    Insn("NEG", none, 0x44),
    [
        Insn(name, none, opc)
        for name, opc in (
            ("LDI", 0xA0), ("CPI", 0xA1), ("INI", 0xA2), ("OUTI", 0xA3),
            ("LDIR", 0xB0), ("CPIR", 0xB1), ("INIR", 0xB2), ("OTIR", 0xB3),
            ("RRD", 0x67), ("RLD", 0x6F),
            ("LDD", 0xA8), ("CPD", 0xA9), ("IND", 0xAA), ("OUTD", 0xAB),
            ("LDDR", 0xB8), ("CPDR", 0xB9), ("INDR", 0xBA), ("OTDR", 0xBB),
        )
    ],
    # RETI and RETN before the LD masks that would swallow them
    Insn("RETI", none, 0x4D),
    Insn("RETN", none, 0x45),
    Mask("LD", seq(_mem16, _rpair), 0xCF, 0x43, X.PTR),
    Mask("LD", seq(_rpair, _mem16), 0xCF, 0x4B, X.PTR),
    [Insn("IN", seq(_reg2, literal("(C)")), opc, X.IO) for opc in (0x40, 0x50, 0x60)],
    Mask("IN", seq(_reg2, literal("(C)")), 0xCF, 0x48, X.IO),
    [Insn("OUT", seq(literal("(C)"), _reg2), opc, X.IO) for opc in (0x41, 0x51, 0x61)],
    Mask("OUT", seq(literal("(C)"), _reg2), 0xCF, 0x49, X.IO),
    Insn("LD", literal("I, A"), 0x47),
    Insn("LD", literal("A, I"), 0x57),
    Insn("LD", literal("R, A"), 0x4F),
    Insn("LD", literal("A, R"), 0x5F),
    Insn("IM", literal("0"), 0x46),
    Insn("IM", literal("1"), 0x56),
    Insn("IM", literal("2"), 0x5E),
)


def _index_bits(index: str) -> DecodeTable:
    off = _ixoff_deferred(index)
    rules: List[Rule] = []
    for name, base in (
        ("RLC", 0x00), ("RRC", 0x08), ("RL", 0x10), ("RR", 0x18),
        ("SLA", 0x20), ("SRA", 0x28), ("SLL", 0x30), ("SRL", 0x38),
    ):
        rules.append(Insn(name, off, base | 0x06, X.REG))
        rules.append(Mask(name, seq(off, _reg), 0xF8, base, X.REG))
    return table(
        f"z80.{index.lower()}cb",
        rules,
        Mask("BIT", seq(_bit, off), 0xC0, 0x40, X.REG),
        Mask("RES", seq(_bit, off), 0xC7, 0x86, X.REG),
        Mask("RES", seq(_bit, off, _reg), 0xC0, 0x80, X.REG),
        Mask("SET", seq(_bit, off), 0xC7, 0xC6, X.REG),
        Mask("SET", seq(_bit, off, _reg), 0xC0, 0xC0, X.REG),
    )


def _index_page(index: str) -> Tuple[DecodeTable, DecodeTable]:
    reg = literal(index)
    off = _ixoff(index)
    bits = _index_bits(index)
    page = table(
        f"z80.{index.lower()}",
        Insn("LD", seq(reg, _imm16), 0x21, X.IMM),
        Insn("LD", seq(_mem16, reg), 0x22, X.DIRECT),
        Insn("LD", seq(reg, _mem16), 0x2A, X.DIRECT),
        Insn("LD", seq(literal("SP"), reg), 0xF9, X.REG),
        Range("LD", seq(off, _reg), 0x70, 0x75, X.REG),
        Insn("LD", seq(off, _reg), 0x77, X.REG),
        Insn("LD", seq(off, _imm8), 0x36, X.IMM),
        Undef(0x76),
        Mask("LD", seq(_reg2, off), 0xC7, 0x46, X.REG),
        Insn("POP", reg, 0xE1, X.REG),
        Insn("PUSH", reg, 0xE5, X.REG),
        Insn("EX", seq(literal("(SP)"), reg), 0xE3, X.REG),
        Insn("INC", reg, 0x23, X.REG),
        Insn("INC", off, 0x34, X.REG),
        Insn("DEC", reg, 0x2B, X.REG),
        Insn("DEC", off, 0x35, X.REG),
        Insn("ADD", seq(reg, reg), 0x29, X.REG),
        Mask("ADD", seq(reg, _rpair), 0xCF, 0x09, X.REG),
        [
            Insn(name, seq(_a, off), opc, X.REG)
            for name, opc in (
                ("ADD", 0x86), ("ADC", 0x8E), ("SUB", 0x96), ("SBC", 0x9E),
                ("AND", 0xA6), ("XOR", 0xAE), ("OR", 0xB6), ("CP", 0xBE),
            )
        ],
        Insn("JP", literal(f"({index})"), 0xE9, X.REG),
        PushTable(bits, 0xCB, 1),
    )
    return page, bits


PAGE_IX, PAGE_IXBITS = _index_page("IX")
PAGE_IY, PAGE_IYBITS = _index_page("IY")

ROOT = table(
    "z80",
    Insn("HALT", none, 0x76),
    # load/store/push/pop
    Mask("LD", seq(_reg2, _reg), 0xC0, 0x40, X.PTR),
    Mask("LD", seq(_reg2, _imm8), 0xC7, 0x06, X.IMM),
    Mask("LD", seq(_rpair, _imm16), 0xCF, 0x01, X.IMM),
    Mask("LD", seq(_indrpair, _a), 0xEF, 0x02, X.PTR),
    Mask("LD", seq(_a, _indrpair), 0xEF, 0x0A, X.PTR),
    Insn("LD", seq(_mem16, literal("HL")), 0x22, X.PTR),
    Insn("LD", seq(literal("HL"), _mem16), 0x2A, X.PTR),
    Insn("LD", seq(_mem16, _a), 0x32, X.PTR),
    Insn("LD", seq(_a, _mem16), 0x3A, X.PTR),
    # AF before the register-pair masks
    Insn("POP", literal("AF"), 0xF1, X.REG),
    Mask("POP", _rpair, 0xCF, 0xC1, X.REG),
    Insn("PUSH", literal("AF"), 0xF5, X.REG),
    Mask("PUSH", _rpair, 0xCF, 0xC5, X.REG),
    Insn("IN", seq(_a, _mem8), 0xDB, X.IO),
    Insn("OUT", seq(_mem8, _a), 0xD3, X.IO),
    Insn("LD", literal("SP, HL"), 0xF9),
    # 8-bit arithmetic
    [
        Mask(name, seq(_a, _reg), 0xF8, 0x80 | base)
        for name, base in (
            ("ADD", 0x00), ("ADC", 0x08), ("SUB", 0x10), ("SBC", 0x18),
            ("AND", 0x20), ("XOR", 0x28), ("OR", 0x30), ("CP", 0x38),
        )
    ],
    [
        Insn(name, seq(_a, _imm8), 0xC6 | base, X.IMM)
        for name, base in (
            ("ADD", 0x00), ("ADC", 0x08), ("SUB", 0x10), ("SBC", 0x18),
            ("AND", 0x20), ("XOR", 0x28), ("OR", 0x30), ("CP", 0x38),
        )
    ],
    [
        Insn(name, none, opc)
        for name, opc in (
            ("RLCA", 0x07), ("RRCA", 0x0F), ("RLA", 0x17), ("RRA", 0x1F),
            ("DAA", 0x27), ("CPL", 0x2F), ("SCF", 0x37), ("CCF", 0x3F),
        )
    ],
    Mask("INC", _reg2, 0xC7, 0x04, X.REG),
    Mask("DEC", _reg2, 0xC7, 0x05, X.REG),
    # 16-bit arithmetic
    Mask("INC", _rpair, 0xCF, 0x03),
    Mask("DEC", _rpair, 0xCF, 0x0B),
    Mask("ADD", seq(literal("HL"), _rpair), 0xCF, 0x09),
    # branches
    Insn("RET", none, 0xC9),
    Mask("RET", _cond, 0xC7, 0xC0),
    Insn("DJNZ", _rel8, 0x10, X.JUMP),
    Insn("JP", _addr16, 0xC3, X.JUMP),
    Mask("JP", seq(_cond, _addr16), 0xC7, 0xC2, X.JUMP),
    Insn("JP", literal("(HL)"), 0xE9, X.REG),
    Insn("CALL", _addr16, 0xCD, X.CALL),
    Mask("CALL", seq(_cond, _addr16), 0xC7, 0xC4, X.CALL),
    Insn("JR", _rel8, 0x18, X.JUMP),
    Mask("JR", seq(_condalt, _rel8), 0xE7, 0x20, X.JUMP),
    # misc
    Insn("NOP", none, 0x00),
    Insn("DI", none, 0xF3),
    Insn("EI", none, 0xFB),
    Insn("EXX", none, 0xD9),
    Insn("EX", literal("DE, HL"), 0xEB),
    Insn("EX", literal("AF, AF'"), 0x08),
    Insn("EX", literal("(SP), HL"), 0xE3),
    Mask("RST", _rst, 0xC7, 0xC7),
    # sub-pages
    SubTable(PAGE_BITS, 0xCB),
    SubTable(PAGE_IX, 0xDD),
    SubTable(PAGE_EXTD, 0xED),
    SubTable(PAGE_IY, 0xFD),
)

ARCH = Architecture(PROFILE, ROOT)
