"""Intel 8086.

Segment overrides and REP are prefix rules: they record their effect in the
per-instruction prefix state and the walk restarts on the next byte. Groups
that select the operation with the REG field of the ModRM byte use
bitmask-on-next rules, which peek at the ModRM byte without consuming it.
"""

from __future__ import annotations

from typing import List

from ..decoding.context import DecodeContext
from ..decoding.operands import literal, none, rel8, rel16, seq
from ..decoding.rules import Insn, Mask, MaskNext, Prefix, Rule, table
from ..xref import RefKind
from .profile import Architecture, ArchProfile

PROFILE = ArchProfile(
    name="i8086",
    description="Intel 8086",
    max_insn_length=6,
    mnemonic_width=8,
    msb_first=False,
    unit_width=1,
)

NUM8 = "0%02X"
NUM16 = "0%04X"

X = RefKind

SEGREGS = ("ES", "CS", "SS", "DS")
WORDREGS = ("AX", "CX", "DX", "BX", "SP", "BP", "SI", "DI")
BYTEREGS = ("AL", "CL", "DL", "BL", "AH", "CH", "DH", "BH")
EAREGS = ("BX + SI", "BX + DI", "BP + SI", "BP + DI", "SI", "DI", "BP", "BX")

# Opcodes whose ModRM REG field selects the operation instead of a register.
_REG_SELECTS_OP = frozenset(
    {0xFF, 0xFE, 0x8F, 0xD0, 0xD1, 0xD2, 0xD3, 0x80, 0x81, 0x83, 0xC6, 0xC7, 0xF6, 0xF7}
)

# ---- prefixes ----


def _pfx_seg(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.prefix_state["seg"] = SEGREGS[(opc >> 3) & 0x03]


def _pfx_rep(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.prefix_state["lead"] = "REP " if opc & 1 else "REPNZ "


def _seg_override(ctx: DecodeContext) -> None:
    seg = ctx.take_prefix("seg")
    if seg is not None:
        ctx.operand("%s:", seg)


# ---- operands ----


def _gobble(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.cursor.read_u8()


def _reg(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    regs = WORDREGS if opc & 0x08 else BYTEREGS
    ctx.operand("%s", regs[opc & 0x07])


def _reg16(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.operand("%s", WORDREGS[opc & 0x07])


def _acc(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.operand("AX" if opc & 1 else "AL")


def _segmreg(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.operand("%s", SEGREGS[(opc >> 3) & 0x03])


def _imm8(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.operand(NUM8, ctx.cursor.read_u8())


def _imm16(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.address(ctx.cursor.read_word(), NUM16, xref)


# Stack adjustment of RETN/RETF: a count, never an address.
def _count16(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.operand(NUM16, ctx.cursor.read_word())


_disp8 = rel8(NUM16)
_disp16 = rel16(NUM16)


def _addr16(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    dest = ctx.cursor.read_word()
    _seg_override(ctx)
    ctx.address(dest, NUM16, xref, wrap=("W[%s]" if opc & 1 else "B[%s]"))


def _segoff(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    offset = ctx.cursor.read_word()
    segment = ctx.cursor.read_word()
    ctx.operand(NUM16 + ":" + NUM16, segment, offset)


def _effective_address(ctx: DecodeContext, mod: int, rm: int, wordop: bool, xref: RefKind) -> None:
    size = "W" if wordop else "B"
    if mod == 3:
        ctx.operand("%s", (WORDREGS if wordop else BYTEREGS)[rm])
        return
    if mod == 0 and rm == 6:
        dest = ctx.cursor.read_word()
        _seg_override(ctx)
        ctx.address(dest, NUM16, xref, wrap=size + "[%s]")
        return
    if mod == 0:
        _seg_override(ctx)
        ctx.operand("%s[%s]", size, EAREGS[rm])
    elif mod == 1:
        disp = ctx.cursor.read_u8()
        _seg_override(ctx)
        ctx.operand("%s[%s + " + NUM8 + "]", size, EAREGS[rm], disp)
    else:
        disp = ctx.cursor.read_word()
        _seg_override(ctx)
        ctx.operand("%s[%s + " + NUM16 + "]", size, EAREGS[rm], disp)


def _modrm(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    arg = ctx.cursor.read_u8()
    mod, reg, rm = (arg >> 6) & 3, (arg >> 3) & 7, arg & 7
    wordop = bool(opc & 1)
    to_reg = bool(opc & 2)
    isseg = False

    if opc == 0xC4:  # LES
        wordop = True
        to_reg = True
    elif opc in (0x8D, 0xC5):  # LEA, LDS
        to_reg = True
    elif opc in (0x8C, 0x8E):
        isseg = True
        wordop = True

    if opc in _REG_SELECTS_OP or (opc & 0xF8) == 0xD8:
        _effective_address(ctx, mod, rm, wordop, xref)
        return

    def register() -> None:
        if isseg:
            ctx.operand("%s", SEGREGS[reg & 0x03])
        else:
            ctx.operand("%s", (WORDREGS if wordop else BYTEREGS)[reg])

    if to_reg:
        register()
        ctx.comma()
        _effective_address(ctx, mod, rm, wordop, xref)
    else:
        _effective_address(ctx, mod, rm, wordop, xref)
        ctx.comma()
        register()


def _modrm_count(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    _modrm(ctx, opc, xref)
    ctx.comma()
    ctx.operand("CL" if opc & 2 else "1")


def _modrm_imm(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    _modrm(ctx, opc, xref)
    ctx.comma()
    # MOV and TEST have no sign-extended form
    sw = opc & 1 if (opc & 0xFE) in (0xC6, 0xF6) else opc & 3
    if sw == 1:
        ctx.operand(NUM16, ctx.cursor.read_word())
    elif sw == 3:
        ctx.operand(NUM16, ctx.cursor.read_s8() & 0xFFFF)
    else:
        ctx.operand(NUM8, ctx.cursor.read_u8())


_dx = literal("DX")

# ---- rule groups ----


def _arith_acc(name: str, opc: int) -> List[Rule]:
    return [
        Insn(name, seq(_acc, _imm8), opc),
        Insn(name, seq(_acc, _imm16), opc | 1),
    ]


def _arith_rm_imm(name: str, ext: int, opcodes=(0x80, 0x81, 0x83)) -> List[Rule]:
    return [MaskNext(name, _modrm_imm, opc, 0x38, ext) for opc in opcodes]


def _group(name: str, ext: int, opcodes, render=_modrm, xref: RefKind = X.NONE) -> List[Rule]:
    return [MaskNext(name, render, opc, 0x38, ext, xref) for opc in opcodes]


_UNARY = (0xFE, 0xFF)
_UNARY_F6 = (0xF6, 0xF7)
_SHIFTS = (0xD0, 0xD1, 0xD2, 0xD3)

ROOT = table(
    "i8086",
    # XCHG AX, AX
    Insn("NOP", none, 0x90),
    # data transfer
    Mask("MOV", seq(_acc, _addr16), 0xFE, 0xA0, X.DATA),
    Mask("MOV", seq(_addr16, _acc), 0xFE, 0xA2, X.DATA),
    Mask("MOV", seq(_reg, _imm8), 0xF8, 0xB0),
    Mask("MOV", seq(_reg, _imm16), 0xF8, 0xB8, X.IMM),
    Mask("MOV", _modrm, 0xFC, 0x88, X.DATA),
    Mask("MOV", _modrm, 0xFD, 0x8C),
    Mask("MOV", _modrm_imm, 0xFE, 0xC6, X.DATA),
    Mask("IN", seq(_acc, _imm8), 0xFE, 0xE4, X.IO),
    Mask("IN", seq(_acc, _dx), 0xFE, 0xEC),
    Mask("OUT", seq(_imm8, _acc), 0xFE, 0xE6, X.IO),
    Mask("OUT", seq(_dx, _acc), 0xFE, 0xEE),
    Mask("PUSH", _reg16, 0xF8, 0x50),
    Mask("PUSH", _segmreg, 0xE7, 0x06),
    MaskNext("PUSH", _modrm, 0xFF, 0x38, 0x30, X.DATA),
    Mask("POP", _reg16, 0xF8, 0x58),
    Mask("POP", _segmreg, 0xE7, 0x07),
    MaskNext("POP", _modrm, 0x8F, 0x38, 0x00, X.DATA),
    Mask("XCHG", seq(literal("AX"), _reg16), 0xF8, 0x90),
    Mask("XCHG", _modrm, 0xFE, 0x86, X.DATA),
    Insn("XLAT", none, 0xD7),
    Insn("LEA", _modrm, 0x8D, X.DATA),
    Insn("LDS", _modrm, 0xC5, X.DATA),
    Insn("LES", _modrm, 0xC4, X.DATA),
    Insn("LAHF", none, 0x9F),
    Insn("SAHF", none, 0x9E),
    Insn("PUSHF", none, 0x9C),
    Insn("POPF", none, 0x9D),
    # arithmetic
    _arith_acc("ADD", 0x04),
    _arith_acc("ADC", 0x14),
    _arith_acc("SUB", 0x2C),
    _arith_acc("SBB", 0x1C),
    _arith_acc("CMP", 0x3C),
    _arith_acc("AND", 0x24),
    _arith_acc("TEST", 0xA8),
    _arith_acc("OR", 0x0C),
    _arith_acc("XOR", 0x34),
    _arith_rm_imm("ADD", 0x00),
    _arith_rm_imm("ADC", 0x10),
    _arith_rm_imm("SUB", 0x28),
    _arith_rm_imm("SBB", 0x18),
    _arith_rm_imm("CMP", 0x38),
    _arith_rm_imm("AND", 0x20, (0x80, 0x81)),
    _arith_rm_imm("OR", 0x08, (0x80, 0x81)),
    _arith_rm_imm("XOR", 0x30, (0x80, 0x81)),
    _group("TEST", 0x00, _UNARY_F6, _modrm_imm),
    Mask("ADD", _modrm, 0xFC, 0x00, X.DATA),
    Mask("ADC", _modrm, 0xFC, 0x10, X.DATA),
    Mask("SUB", _modrm, 0xFC, 0x28, X.DATA),
    Mask("SBB", _modrm, 0xFC, 0x18, X.DATA),
    Mask("CMP", _modrm, 0xFC, 0x38, X.DATA),
    Mask("AND", _modrm, 0xFC, 0x20, X.DATA),
    Mask("TEST", _modrm, 0xFE, 0x84, X.DATA),
    Mask("OR", _modrm, 0xFC, 0x08, X.DATA),
    Mask("XOR", _modrm, 0xFC, 0x30, X.DATA),
    Mask("INC", _reg16, 0xF8, 0x40),
    _group("INC", 0x00, _UNARY),
    Mask("DEC", _reg16, 0xF8, 0x48),
    _group("DEC", 0x08, _UNARY),
    _group("NOT", 0x10, _UNARY_F6),
    _group("NEG", 0x18, _UNARY_F6),
    _group("MUL", 0x20, _UNARY_F6),
    _group("IMUL", 0x28, _UNARY_F6),
    _group("DIV", 0x30, _UNARY_F6),
    _group("IDIV", 0x38, _UNARY_F6),
    Insn("AAA", none, 0x37),
    Insn("DAA", none, 0x27),
    Insn("AAS", none, 0x3F),
    Insn("DAS", none, 0x2F),
    MaskNext("AAM", _gobble, 0xD4, 0xFF, 0x0A),
    MaskNext("AAD", _gobble, 0xD5, 0xFF, 0x0A),
    Insn("CBW", none, 0x98),
    Insn("CWD", none, 0x99),
    # shifts and rotates
    _group("ROL", 0x00, _SHIFTS, _modrm_count),
    _group("ROR", 0x08, _SHIFTS, _modrm_count),
    _group("RCL", 0x10, _SHIFTS, _modrm_count),
    _group("RCR", 0x18, _SHIFTS, _modrm_count),
    _group("SHL", 0x20, _SHIFTS, _modrm_count),
    _group("SHR", 0x28, _SHIFTS, _modrm_count),
    _group("SAR", 0x38, _SHIFTS, _modrm_count),
    # strings
    Prefix(_pfx_rep, 0xF2),
    Prefix(_pfx_rep, 0xF3),
    [
        Insn(name, none, opc)
        for name, opc in (
            ("MOVSB", 0xA4), ("MOVSW", 0xA5), ("CMPSB", 0xA6), ("CMPSW", 0xA7),
            ("SCASB", 0xAE), ("SCASW", 0xAF), ("LODSB", 0xAC), ("LODSW", 0xAD),
            ("STOSB", 0xAA), ("STOSW", 0xAB),
        )
    ],
    # control transfer
    Insn("CALL", _disp16, 0xE8, X.CALL),
    Insn("CALL", _segoff, 0x9A, X.CALL),
    _group("CALL", 0x10, (0xFF,), xref=X.CALL),
    _group("CALL", 0x18, (0xFF,), xref=X.CALL),
    Insn("JMP", _disp8, 0xEB, X.JUMP),
    Insn("JMP", _disp16, 0xE9, X.JUMP),
    Insn("JMP", _segoff, 0xEA, X.JUMP),
    _group("JMP", 0x20, (0xFF,), xref=X.JUMP),
    _group("JMP", 0x28, (0xFF,), xref=X.JUMP),
    Insn("RETN", none, 0xC3),
    Insn("RETN", _count16, 0xC2),
    Insn("RETF", none, 0xCB),
    Insn("RETF", _count16, 0xCA),
    [
        Insn(name, _disp8, 0x70 + cc, X.JUMP)
        for cc, name in enumerate(
            (
                "JO", "JNO", "JB", "JNB", "JE", "JNE", "JBE", "JNBE",
                "JS", "JNS", "JP", "JNP", "JL", "JNL", "JLE", "JNLE",
            )
        )
    ],
    Insn("LOOP", _disp8, 0xE2, X.JUMP),
    Insn("LOOPZ", _disp8, 0xE1, X.JUMP),
    Insn("LOOPNZ", _disp8, 0xE0, X.JUMP),
    Insn("JCXZ", _disp8, 0xE3, X.JUMP),
    Insn("INT", _imm8, 0xCD),
    Insn("INT3", none, 0xCC),
    Insn("INTO", none, 0xCE),
    Insn("IRET", none, 0xCF),
    # processor control
    [
        Insn(name, none, opc)
        for name, opc in (
            ("CLC", 0xF8), ("CMC", 0xF5), ("STC", 0xF9), ("CLD", 0xFC),
            ("STD", 0xFD), ("CLI", 0xFA), ("STI", 0xFB), ("HLT", 0xF4),
            ("WAIT", 0x9B),
        )
    ],
    Mask("ESC", _modrm, 0xF8, 0xD8),
    Insn("LOCK", none, 0xF0),
    # segment override prefixes
    [Prefix(_pfx_seg, opc) for opc in (0x26, 0x2E, 0x36, 0x3E)],
)

ARCH = Architecture(PROFILE, ROOT)
