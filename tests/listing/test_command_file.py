from pathlib import Path

import pytest

from retrodasm.errors import ConfigurationError
from retrodasm.listing import SegmentMode, load_command_file, parse_command
from retrodasm.xref import SymbolTable


def _write(path: Path, text: str) -> Path:
    path.write_text(text)
    return path


@pytest.mark.parametrize(
    "line, command, address, text",
    [
        ("c8000", "c", 0x8000, None),
        ("c 8000 main", "c", 0x8000, "main"),
        ("bA000", "b", 0xA000, None),
        ("e9000", "e", 0x9000, None),
        ("l1234 loop", "l", 0x1234, "loop"),
        ("k8000 entry point", "k", 0x8000, "entry point"),
        ("t0D", "t", 0x0D, None),
        ("fgame.bin", "f", None, "game.bin"),
        ("f game.bin", "f", None, "game.bin"),
    ],
)
def test_parse_command(line, command, address, text) -> None:
    directive = parse_command(line)
    assert directive.command == command
    assert directive.address == address
    assert directive.text == text


def test_parse_range() -> None:
    directive = parse_command("r8000,80FF")
    assert (directive.address, directive.end) == (0x8000, 0x80FF)


def test_loads_segments_labels_and_comments(tmp_path: Path) -> None:
    lst = _write(
        tmp_path / "game.lst",
        "# demo\n"
        "f game.bin\n"
        "t0D\n"
        "b8004\n"
        "c8000 main\n"
        "l8002 loop\n"
        "k8000 load A\n"
        "\n",
    )
    symbols = SymbolTable()
    plan = load_command_file(lst, symbols)
    assert plan.input_file == tmp_path / "game.bin"
    assert plan.terminator == 0x0D
    assert [(s.address, s.mode) for s in plan.segments] == [
        (0x8000, SegmentMode.CODE),
        (0x8004, SegmentMode.BYTES),
    ]
    assert plan.start_address == 0x8000
    assert symbols.labels() == {0x8000: "main", 0x8002: "loop"}
    assert plan.line_comments == {0x8000: "load A"}


def test_duplicate_label_names_file_and_line(tmp_path: Path) -> None:
    lst = _write(tmp_path / "dup.lst", "f x.bin\nl8000 foo\nl8000 bar\n")
    with pytest.raises(ConfigurationError) as exc:
        load_command_file(lst, SymbolTable())
    assert f"{lst}:3" in str(exc.value)
    assert "'foo' and 'bar'" in str(exc.value)


def test_malformed_line_is_rejected(tmp_path: Path) -> None:
    lst = _write(tmp_path / "bad.lst", "f x.bin\nzzz\n")
    with pytest.raises(ConfigurationError, match="malformed command 'zzz'"):
        load_command_file(lst, SymbolTable())


def test_label_without_name_is_generated(tmp_path: Path) -> None:
    lst = _write(tmp_path / "auto.lst", "f x.bin\nl8010\np8020\nc8000\n")
    symbols = SymbolTable()
    load_command_file(lst, symbols)
    assert symbols.labels() == {0x8010: "___8010", 0x8020: "___8020"}


def test_include_is_relative_to_including_file(tmp_path: Path) -> None:
    sub = tmp_path / "sub"
    sub.mkdir()
    _write(sub / "labels.lst", "l8000 start\n")
    lst = _write(tmp_path / "main.lst", "f game.bin\ni sub/labels.lst\nc8000\n")
    symbols = SymbolTable()
    plan = load_command_file(lst, symbols)
    assert symbols.lookup_label(0x8000) == "start"
    assert plan.sources == [lst, sub / "labels.lst"]


def test_self_include_is_bounded(tmp_path: Path) -> None:
    lst = _write(tmp_path / "loop.lst", "f x.bin\ni loop.lst\n")
    with pytest.raises(ConfigurationError, match="nested too deeply"):
        load_command_file(lst, SymbolTable())


def test_note_collects_lines_until_dot(tmp_path: Path) -> None:
    lst = _write(
        tmp_path / "note.lst",
        "f x.bin\nn8000 Reset handler\n  clears RAM\n.\nc8000\n",
    )
    plan = load_command_file(lst, SymbolTable())
    assert plan.block_comments == {0x8000: "Reset handler\n  clears RAM"}


def test_unclosed_note_is_an_error(tmp_path: Path) -> None:
    lst = _write(tmp_path / "note.lst", "f x.bin\nn8000 Reset\nc8000\n")
    with pytest.raises(ConfigurationError, match="not closed"):
        load_command_file(lst, SymbolTable())


def test_duplicate_comment_is_an_error(tmp_path: Path) -> None:
    lst = _write(tmp_path / "k.lst", "f x.bin\nk8000 one\nk8000 two\n")
    with pytest.raises(ConfigurationError, match="multiple comments"):
        load_command_file(lst, SymbolTable())


def test_range_filters_labels_and_comments(tmp_path: Path) -> None:
    lst = _write(
        tmp_path / "r.lst",
        "f x.bin\nr8000,80FF\nl0010 zp\nk0010 outside\nl8000 main\nc8000\n",
    )
    symbols = SymbolTable()
    plan = load_command_file(lst, symbols)
    assert symbols.labels() == {0x8000: "main"}
    assert plan.line_comments == {}


def test_terminator_must_be_a_byte(tmp_path: Path) -> None:
    lst = _write(tmp_path / "t.lst", "f x.bin\nt100\n")
    with pytest.raises(ConfigurationError, match="not a byte"):
        load_command_file(lst, SymbolTable())


def test_missing_input_file_directive(tmp_path: Path) -> None:
    lst = _write(tmp_path / "nofile.lst", "c8000\n")
    with pytest.raises(ConfigurationError, match="no input file specified"):
        load_command_file(lst, SymbolTable())


def test_missing_command_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="failed to open list command file"):
        load_command_file(tmp_path / "absent.lst", SymbolTable())
