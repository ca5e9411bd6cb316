from __future__ import annotations

from dataclasses import dataclass, replace
import logging
import os
from typing import Optional


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().casefold()
    return normalized not in {"0", "false", "off", ""}


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


@dataclass(frozen=True)
class DasmConfig:
    check_stack: bool
    log_level: str
    trace_file: Optional[str] = None

    def with_overrides(self, **changes: object) -> "DasmConfig":
        """Return a copy with every non-None override applied."""

        applied = {key: value for key, value in changes.items() if value is not None}
        return replace(self, **applied)

    @property
    def logging_level(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.WARNING


def load_config() -> DasmConfig:
    return DasmConfig(
        check_stack=_env_flag("RETRODASM_CHECK_STACK", default=True),
        log_level=_env_str("RETRODASM_LOG_LEVEL") or "WARNING",
        trace_file=_env_str("RETRODASM_TRACE"),
    )


__all__ = ["DasmConfig", "load_config"]
