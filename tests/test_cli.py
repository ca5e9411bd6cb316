from pathlib import Path

import pytest

from retrodasm.cli import build_parser, main


@pytest.fixture
def listfile(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.delenv("RETRODASM_TRACE", raising=False)
    monkeypatch.delenv("RETRODASM_CHECK_STACK", raising=False)
    (tmp_path / "rom.bin").write_bytes(bytes([0xA9, 0x01, 0x60]))
    lst = tmp_path / "rom.lst"
    lst.write_text("f rom.bin\nc8000 reset\n")
    return lst


def test_listing_to_stdout(listfile: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["6502", str(listfile)]) == 0
    out = capsys.readouterr().out
    assert "LDA     #$01" in out
    assert "reset:" in out


def test_listing_to_file(listfile: Path, tmp_path: Path) -> None:
    target = tmp_path / "rom.asm"
    assert main(["mos6502", str(listfile), "-o", str(target)]) == 0
    assert "RTS" in target.read_text()


def test_unknown_architecture(listfile: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["pdp11", str(listfile)]) == 1
    err = capsys.readouterr().err
    assert err.startswith("retrodasm :: Error :: unknown architecture 'pdp11'")


def test_missing_input_image(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    lst = tmp_path / "gone.lst"
    lst.write_text("f gone.bin\nc0000\n")
    assert main(["z80", str(lst)]) == 1
    assert "failed to open input file" in capsys.readouterr().err


def test_list_archs(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--list-archs"]) == 0
    out = capsys.readouterr().out
    assert [line.split()[0] for line in out.splitlines()] == ["i8086", "mos6502", "z80"]


def test_positionals_required() -> None:
    with pytest.raises(SystemExit):
        main([])


def test_check_stack_flag_is_tristate() -> None:
    parser = build_parser()
    assert parser.parse_args(["z80", "x.lst"]).check_stack is None
    assert parser.parse_args(["z80", "x.lst", "--no-check-stack"]).check_stack is False
