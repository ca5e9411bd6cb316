"""MOS Technology 6502."""

from __future__ import annotations

from typing import List

from ..decoding.context import DecodeContext
from ..decoding.operands import abs16, imm8, literal, none, rel8, seq
from ..decoding.rules import Insn, Rule, table
from ..xref import RefKind
from .profile import Architecture, ArchProfile

PROFILE = ArchProfile(
    name="mos6502",
    description="MOS Technology 6502",
    max_insn_length=3,
    mnemonic_width=8,
    msb_first=False,
    unit_width=1,
)

NUM8 = "$%02X"
NUM16 = "$%04X"

X = RefKind

# ---- operands ----


def _zeropage(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.address(ctx.cursor.read_u8(), NUM8, xref)


_imm8 = imm8("#" + NUM8)
_abs16 = abs16(NUM16)
_rel8 = rel8(NUM16)
_zeropage_x = seq(_zeropage, literal("X"))
_zeropage_y = seq(_zeropage, literal("Y"))
_abs16_x = seq(_abs16, literal("X"))
_abs16_y = seq(_abs16, literal("Y"))
_ind16 = abs16(NUM16, wrap="(%s)")


def _ind8_x(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.address(ctx.cursor.read_u8(), NUM8, xref, wrap="(%s")
    ctx.comma()
    ctx.operand("X)")


def _ind8_y(ctx: DecodeContext, opc: int, xref: RefKind) -> None:
    ctx.address(ctx.cursor.read_u8(), NUM8, xref, wrap="(%s)")
    ctx.comma()
    ctx.operand("Y")


# ---- rule groups ----


def _acc_op(name: str, base: int) -> List[Rule]:
    return [
        Insn(name, _imm8, 0x09 | base),
        Insn(name, _zeropage, 0x05 | base, X.PTR),
        Insn(name, _zeropage_x, 0x15 | base, X.PTR),
        Insn(name, _abs16, 0x0D | base, X.PTR),
        Insn(name, _abs16_x, 0x1D | base, X.PTR),
        Insn(name, _abs16_y, 0x19 | base, X.PTR),
        Insn(name, _ind8_x, 0x01 | base, X.PTR),
        Insn(name, _ind8_y, 0x11 | base, X.PTR),
    ]


def _shift_op(name: str, base: int) -> List[Rule]:
    return [
        Insn(name, none, 0x0A | base),
        Insn(name, _zeropage, 0x06 | base, X.PTR),
        Insn(name, _zeropage_x, 0x16 | base, X.PTR),
        Insn(name, _abs16, 0x0E | base, X.PTR),
        Insn(name, _abs16_x, 0x1E | base, X.PTR),
    ]


def _implied(*pairs) -> List[Rule]:
    return [Insn(name, none, opc) for name, opc in pairs]


ROOT = table(
    "mos6502",
    # load/store
    _acc_op("LDA", 0xA0),
    Insn("LDX", _imm8, 0xA2),
    Insn("LDX", _zeropage, 0xA6, X.PTR),
    Insn("LDX", _zeropage_y, 0xB6, X.PTR),
    Insn("LDX", _abs16, 0xAE, X.PTR),
    Insn("LDX", _abs16_y, 0xBE, X.PTR),
    Insn("LDY", _imm8, 0xA0),
    Insn("LDY", _zeropage, 0xA4, X.PTR),
    Insn("LDY", _zeropage_x, 0xB4, X.PTR),
    Insn("LDY", _abs16, 0xAC, X.PTR),
    Insn("LDY", _abs16_x, 0xBC, X.PTR),
    Insn("STA", _zeropage, 0x85, X.PTR),
    Insn("STA", _zeropage_x, 0x95, X.PTR),
    Insn("STA", _abs16, 0x8D, X.PTR),
    Insn("STA", _abs16_x, 0x9D, X.PTR),
    Insn("STA", _abs16_y, 0x99, X.PTR),
    Insn("STA", _ind8_x, 0x81, X.PTR),
    Insn("STA", _ind8_y, 0x91, X.PTR),
    Insn("STX", _zeropage, 0x86, X.PTR),
    Insn("STX", _zeropage_y, 0x96, X.PTR),
    Insn("STX", _abs16, 0x8E, X.PTR),
    Insn("STY", _zeropage, 0x84, X.PTR),
    Insn("STY", _zeropage_x, 0x94, X.PTR),
    Insn("STY", _abs16, 0x8C, X.PTR),
    # transfers and stack
    _implied(
        ("TAX", 0xAA), ("TAY", 0xA8), ("TXA", 0x8A), ("TYA", 0x98),
        ("TSX", 0xBA), ("TXS", 0x9A), ("PHA", 0x48), ("PHP", 0x08),
        ("PLA", 0x68), ("PLP", 0x28),
    ),
    # logical and arithmetic
    _acc_op("AND", 0x20),
    _acc_op("EOR", 0x40),
    _acc_op("ORA", 0x00),
    Insn("BIT", _zeropage, 0x24, X.PTR),
    Insn("BIT", _abs16, 0x2C, X.PTR),
    _acc_op("ADC", 0x60),
    _acc_op("SBC", 0xE0),
    _acc_op("CMP", 0xC0),
    Insn("CPX", _imm8, 0xE0),
    Insn("CPX", _zeropage, 0xE4, X.PTR),
    Insn("CPX", _abs16, 0xEC, X.PTR),
    Insn("CPY", _imm8, 0xC0),
    Insn("CPY", _zeropage, 0xC4, X.PTR),
    Insn("CPY", _abs16, 0xCC, X.PTR),
    # increment/decrement
    Insn("INC", _zeropage, 0xE6, X.PTR),
    Insn("INC", _zeropage_x, 0xF6, X.PTR),
    Insn("INC", _abs16, 0xEE, X.PTR),
    Insn("INC", _abs16_x, 0xFE, X.PTR),
    Insn("DEC", _zeropage, 0xC6, X.PTR),
    Insn("DEC", _zeropage_x, 0xD6, X.PTR),
    Insn("DEC", _abs16, 0xCE, X.PTR),
    Insn("DEC", _abs16_x, 0xDE, X.PTR),
    _implied(("INX", 0xE8), ("INY", 0xC8), ("DEX", 0xCA), ("DEY", 0x88)),
    # shifts
    _shift_op("ASL", 0x00),
    _shift_op("LSR", 0x40),
    _shift_op("ROL", 0x20),
    _shift_op("ROR", 0x60),
    # jumps and calls
    Insn("JMP", _abs16, 0x4C, X.JUMP),
    Insn("JMP", _ind16, 0x6C, X.PTR),
    Insn("JSR", _abs16, 0x20, X.CALL),
    Insn("RTS", none, 0x60),
    # branches
    [
        Insn(name, _rel8, opc, X.JUMP)
        for name, opc in (
            ("BCC", 0x90), ("BCS", 0xB0), ("BEQ", 0xF0), ("BMI", 0x30),
            ("BNE", 0xD0), ("BPL", 0x10), ("BVC", 0x50), ("BVS", 0x70),
        )
    ],
    # flags and system
    _implied(
        ("CLC", 0x18), ("CLD", 0xD8), ("CLI", 0x58), ("CLV", 0xB8),
        ("SEC", 0x38), ("SED", 0xF8), ("SEI", 0x78),
        ("BRK", 0x00), ("NOP", 0xEA), ("RTI", 0x40),
    ),
)

ARCH = Architecture(PROFILE, ROOT)
