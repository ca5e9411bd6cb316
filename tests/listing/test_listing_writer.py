from pathlib import Path

import pytest

from retrodasm.arch import get_architecture
from retrodasm.errors import BufferTooShort
from retrodasm.listing import ListingWriter, format_xref_report, load_command_file
from retrodasm.listing.formatter import COL_LINECOMMENT
from retrodasm.xref import RefKind, SymbolTable


def _render(tmp_path: Path, commands: str, data: bytes, arch: str = "mos6502") -> str:
    (tmp_path / "game.bin").write_bytes(data)
    lst = tmp_path / "game.lst"
    lst.write_text("f game.bin\n" + commands)
    symbols = SymbolTable()
    plan = load_command_file(lst, symbols)
    return ListingWriter(get_architecture(arch), plan, symbols, data).render()


GAME = bytes(
    [
        0xA9, 0x41,  # 8000 LDA #$41
        0xD0, 0xFE,  # 8002 BNE loop
        0x41, 0x42,  # 8004 bytes
        0x02, 0x80,  # 8006 vector -> loop
    ]
)


def test_mixed_segments(tmp_path: Path) -> None:
    listing = _render(
        tmp_path,
        "c8000 main\nl8002 loop\nk8000 load A\nb8004\nv8006\n",
        GAME,
    )
    lines = listing.splitlines()

    assert "mos6502 -- MOS Technology 6502 Disassembler --" in lines[0]
    assert "   Disassembly start address: 0x8000" in lines

    assert "main:" in lines
    lda = next(line for line in lines if "LDA     #$41" in line)
    assert lda.startswith("    8000:    A9 41 ")
    assert lda.index("; load A") == COL_LINECOMMENT

    assert "loop:" in lines
    assert any(line.endswith("BNE     loop") for line in lines)
    assert any("DB      41 42 " in line and line.endswith("AB") for line in lines)
    assert "    8006:    DW      loop" in lines

    assert "XREFS :" in lines
    assert "8002: Jump   @ 8002   (loop)" in lines
    assert "      Table  @ 8006" in lines


def test_procedure_banner_uses_generated_label(tmp_path: Path) -> None:
    listing = _render(tmp_path, "p8000\n", bytes([0x60]))
    lines = listing.splitlines()
    assert "        Function: ___8000" in lines
    assert "___8000:" in lines
    assert any(line.endswith("RTS") for line in lines)


def test_block_comment_replaces_procedure_banner(tmp_path: Path) -> None:
    listing = _render(tmp_path, "n8000 Reset handler\n.\np8000 reset\n", bytes([0x60]))
    assert "; Reset handler" in listing
    assert "Function:" not in listing


def test_strings_split_on_terminator(tmp_path: Path) -> None:
    listing = _render(tmp_path, "t0D\ns8000\n", b"HI\rOK\r")
    assert "    8000:    DB      'HI'" in listing
    assert "    8003:    DB      'OK'" in listing


def test_words_record_table_references(tmp_path: Path) -> None:
    data = bytes([0x34, 0x12, 0x78, 0x56])
    lst = tmp_path / "w.lst"
    lst.write_text("f w.bin\nw8000\n")
    symbols = SymbolTable()
    plan = load_command_file(lst, symbols)
    listing = ListingWriter(get_architecture("mos6502"), plan, symbols, data).render()
    assert "    8000:    DW      1234 5678" in listing
    assert [r.source for r in symbols.references_to(0x1234)] == [0x8000]
    assert [r.source for r in symbols.references_to(0x5678)] == [0x8002]


def test_chars(tmp_path: Path) -> None:
    listing = _render(tmp_path, "a8000\n", bytes([0x41, 0x00]))
    assert "    8000:    DB      'A',00," in listing


def test_end_segment_stops_output(tmp_path: Path) -> None:
    listing = _render(tmp_path, "c8000\ne8001\n", bytes([0xEA, 0xEA, 0xEA]))
    assert "    8000:    EA" in listing
    assert "8001:" not in listing


def test_unknown_opcode_in_code_segment(tmp_path: Path) -> None:
    listing = _render(tmp_path, "c8000\n", bytes([0x02, 0xEA]))
    assert any(line.endswith("???") for line in listing.splitlines())
    assert any(line.endswith("NOP") for line in listing.splitlines())


def test_truncated_instruction_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(BufferTooShort):
        _render(tmp_path, "c8000\n", bytes([0xAD, 0x00]))


def test_xref_report_layout() -> None:
    symbols = SymbolTable()
    symbols.bind_label(0x1000, "START")
    symbols.record_reference(0x1000, 0x2000, RefKind.CALL)
    symbols.record_reference(0x1000, 0x2010, RefKind.JUMP)
    symbols.record_reference(0x0040, 0x2003, RefKind.PTR)
    assert format_xref_report(symbols).splitlines() == [
        "-" * 27,
        "",
        "0040: Ptr    @ 2003",
        "",
        "1000: Call   @ 2000   (START)",
        "      Jump   @ 2010",
        "",
        "-" * 27,
        "",
    ]
