import pytest

from retrodasm.arch.i8086 import ARCH
from retrodasm.decoding import decode_one
from retrodasm.xref import Reference, RefKind, SymbolTable


def _dis(data, address=0x0100, symbols=None):
    symbols = symbols if symbols is not None else SymbolTable()
    return decode_one(ARCH.new_cursor(bytes(data), address), ARCH, symbols)


@pytest.mark.parametrize(
    "data, text",
    [
        ([0x90], "NOP"),
        ([0xB8, 0x34, 0x12], "MOV     AX, 01234"),
        ([0xB0, 0x7F], "MOV     AL, 07F"),
        ([0x8B, 0xC3], "MOV     AX, BX"),
        ([0x8B, 0x46, 0x04], "MOV     AX, W[BP + 004]"),
        ([0x88, 0x07], "MOV     B[BX], AL"),
        ([0xFF, 0x36, 0x34, 0x12], "PUSH    W[01234]"),
        ([0xFF, 0x06, 0x34, 0x12], "INC     W[01234]"),
        ([0xFE, 0xC0], "INC     AL"),
        ([0x83, 0xC0, 0xFF], "ADD     AX, 0FFFF"),
        ([0x81, 0xEB, 0x00, 0x01], "SUB     BX, 00100"),
        ([0xD1, 0xE0], "SHL     AX, 1"),
        ([0xD3, 0xE8], "SHR     AX, CL"),
        ([0xF3, 0xA4], "REP MOVSB"),
        ([0xF2, 0xAE], "REPNZ SCASB"),
        ([0xD4, 0x0A], "AAM"),
        ([0xCD, 0x21], "INT     021"),
        ([0xEA, 0x00, 0x00, 0xFF, 0xFF], "JMP     0FFFF:00000"),
    ],
)
def test_decode(data, text) -> None:
    insn = _dis(data)
    assert insn.text == text
    assert insn.length == len(data)


def test_segment_override_applies_to_memory_operand() -> None:
    insn = _dis([0x2E, 0xA0, 0x34, 0x12])
    assert insn.text == "MOV     AL, CS:B[01234]"
    assert insn.length == 4


def test_last_segment_override_wins() -> None:
    insn = _dis([0x26, 0x2E, 0xA1, 0x00, 0x20])
    assert insn.text == "MOV     AX, CS:W[02000]"


def test_repeated_prefix_is_consumed() -> None:
    insn = _dis([0x26, 0x26, 0x90])
    assert insn.text == "NOP"
    assert insn.length == 3


def test_conditional_jump_records_target() -> None:
    symbols = SymbolTable()
    insn = _dis([0x74, 0x02], address=0x0100, symbols=symbols)
    assert insn.text == "JE      00104"
    assert symbols.references_to(0x0104) == [Reference(0x0100, RefKind.JUMP)]


def test_direct_memory_operand_uses_label() -> None:
    symbols = SymbolTable()
    symbols.bind_label(0x1234, "COUNT")
    insn = _dis([0xFF, 0x06, 0x34, 0x12], symbols=symbols)
    assert insn.text == "INC     W[COUNT]"


def test_loop_variants() -> None:
    assert _dis([0xE1, 0x00]).text == "LOOPZ   00102"
    assert _dis([0xE0, 0x00]).text == "LOOPNZ  00102"


def test_aam_with_other_base_is_unknown() -> None:
    insn = _dis([0xD4, 0x0B])
    assert insn.text == "???"
    assert insn.length == 1


def test_last_repeat_prefix_wins() -> None:
    assert _dis([0xF2, 0xF3, 0xA4]).text == "REP MOVSB"
    insn = _dis([0xF3] * 40 + [0xA4])
    assert insn.text == "REP MOVSB"
    assert insn.length == 41


def test_return_stack_adjustment_is_not_an_address() -> None:
    symbols = SymbolTable()
    symbols.bind_label(0x0004, "START")
    assert _dis([0xC2, 0x04, 0x00], symbols=symbols).text == "RETN    00004"
    assert _dis([0xCA, 0x04, 0x00], symbols=symbols).text == "RETF    00004"
    assert symbols.references_to(0x0004) == []
