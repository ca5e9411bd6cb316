import pytest

from retrodasm.errors import ConfigurationError, DuplicateLabelError
from retrodasm.xref import Reference, RefKind, SymbolTable, is_auto_label


def test_duplicate_user_label_rejected() -> None:
    symbols = SymbolTable()
    symbols.bind_label(0x2000, "FOO")
    with pytest.raises(DuplicateLabelError) as exc:
        symbols.bind_label(0x2000, "BAR")
    assert isinstance(exc.value, ConfigurationError)
    assert exc.value.address == 0x2000
    assert "'FOO' and 'BAR'" in str(exc.value)
    assert symbols.lookup_label(0x2000) == "FOO"


def test_auto_label_is_replaced_by_user_label() -> None:
    symbols = SymbolTable()
    assert symbols.auto_label(0x3000) == "___3000"
    symbols.bind_label(0x3000, "START")
    assert symbols.lookup_label(0x3000) == "START"


def test_reserved_prefix_marks_label_as_auto() -> None:
    symbols = SymbolTable()
    symbols.bind_label(0x10, "___0010")
    symbols.bind_label(0x10, "ZP_PTR")
    assert symbols.lookup_label(0x10) == "ZP_PTR"
    assert is_auto_label("___0010")
    assert not is_auto_label("ZP_PTR")


def test_auto_label_keeps_existing_label() -> None:
    symbols = SymbolTable()
    symbols.bind_label(0x4000, "MAIN")
    assert symbols.auto_label(0x4000) == "MAIN"


def test_references_kept_in_arrival_order_with_duplicates() -> None:
    symbols = SymbolTable()
    symbols.record_reference(0x1234, 0x1000, RefKind.JUMP)
    symbols.record_reference(0x1234, 0x0800, RefKind.CALL)
    symbols.record_reference(0x1234, 0x1000, RefKind.JUMP)
    assert symbols.references_to(0x1234) == [
        Reference(0x1000, RefKind.JUMP),
        Reference(0x0800, RefKind.CALL),
        Reference(0x1000, RefKind.JUMP),
    ]


def test_none_kind_is_not_recorded() -> None:
    symbols = SymbolTable()
    symbols.record_reference(0x1234, 0x1000, RefKind.NONE)
    assert 0x1234 not in symbols
    assert len(symbols) == 0


def test_targets_ascend_regardless_of_insertion_order() -> None:
    symbols = SymbolTable()
    for target in (0x3000, 0x0100, 0x2000):
        symbols.record_reference(target, 0x0000, RefKind.DATA)
    symbols.bind_label(0x1000, "MID")
    assert [e.address for e in symbols.targets()] == [0x0100, 0x1000, 0x2000, 0x3000]
    assert [e.address for e in symbols.targets(0x1800)] == [0x2000, 0x3000]
    assert symbols.labels() == {0x1000: "MID"}


def test_range_filters_labels_and_references() -> None:
    symbols = SymbolTable(0x8000, 0xFFFF)
    symbols.bind_label(0x0010, "OUTSIDE")
    symbols.record_reference(0x0010, 0x8000, RefKind.PTR)
    symbols.record_reference(0x9000, 0x8000, RefKind.JUMP)
    assert symbols.lookup_label(0x0010) is None
    assert symbols.references_to(0x0010) == []
    assert symbols.auto_label(0x0010) is None
    assert [e.address for e in symbols.targets()] == [0x9000]


def test_format_address_substitutes_label() -> None:
    symbols = SymbolTable()
    symbols.bind_label(0x0200, "SCREEN")
    assert symbols.format_address(0x0200, "$%04X") == "SCREEN"
    assert symbols.format_address(0x0201, "$%04X") == "$0201"


def test_report_tags() -> None:
    assert [kind.tag for kind in RefKind if kind is not RefKind.NONE] == [
        "Jump", "Call", "Imm", "Table", "Direct", "Data", "Ptr", "Reg", "IO",
    ]
