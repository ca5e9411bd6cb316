from __future__ import annotations

from typing import Dict, List

from ..errors import ConfigurationError
from . import i8086, mos6502, z80
from .profile import Architecture, ArchProfile

_REGISTRY: Dict[str, Architecture] = {
    arch.name: arch for arch in (mos6502.ARCH, z80.ARCH, i8086.ARCH)
}

# Short names accepted on the command line.
_ALIASES = {
    "6502": "mos6502",
    "02": "mos6502",
    "x86": "i8086",
    "8086": "i8086",
}


def available() -> List[str]:
    return sorted(_REGISTRY)


def get_architecture(name: str) -> Architecture:
    key = name.strip().lower()
    key = _ALIASES.get(key, key)
    try:
        return _REGISTRY[key]
    except KeyError:
        raise ConfigurationError(
            f"unknown architecture '{name}' (known: {', '.join(available())})"
        ) from None


__all__ = ["ArchProfile", "Architecture", "available", "get_architecture"]
