import logging

import pytest

from retrodasm.config import load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("RETRODASM_CHECK_STACK", "RETRODASM_LOG_LEVEL", "RETRODASM_TRACE"):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    config = load_config()
    assert config.check_stack is True
    assert config.logging_level == logging.WARNING
    assert config.trace_file is None


@pytest.mark.parametrize("raw", ["0", "false", "OFF", " "])
def test_check_stack_disabled_by_env(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("RETRODASM_CHECK_STACK", raw)
    assert load_config().check_stack is False


def test_log_level_and_trace_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRODASM_LOG_LEVEL", "debug")
    monkeypatch.setenv("RETRODASM_TRACE", " out.perfetto ")
    config = load_config()
    assert config.logging_level == logging.DEBUG
    assert config.trace_file == "out.perfetto"


def test_unknown_log_level_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RETRODASM_LOG_LEVEL", "chatty")
    assert load_config().logging_level == logging.WARNING


def test_overrides_skip_none() -> None:
    config = load_config().with_overrides(check_stack=None, trace_file="t.pftrace")
    assert config.check_stack is True
    assert config.trace_file == "t.pftrace"
