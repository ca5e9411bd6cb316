# based on https://github.com/whitequark/binja-avnera/blob/main/mc/tokens.py
from __future__ import annotations

from typing import Optional, Sequence


class Token:
    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return False
        return self.__dict__ == getattr(other, "__dict__", {})

    def __len__(self) -> int:
        return len(str(self))


def asm_str(parts: Sequence[Token]) -> str:
    return "".join(str(part) for part in parts)


class TInstr(Token):
    def __init__(self, instr: str, width: int = 0) -> None:
        self.instr = instr
        self.width = width

    def __repr__(self) -> str:
        return f"TInstr({self.instr})"

    def __str__(self) -> str:
        return self.instr.ljust(self.width)


class TSep(Token):
    def __init__(self, sep: str) -> None:
        self.sep = sep

    def __repr__(self) -> str:
        return f"TSep({self.sep})"

    def __str__(self) -> str:
        return self.sep


class TText(Token):
    def __init__(self, text: str) -> None:
        self.text = text

    def __repr__(self) -> str:
        return f"TText({self.text})"

    def __str__(self) -> str:
        return self.text


class TAddr(Token):
    """An address operand, printed as its label when one is bound."""

    def __init__(self, value: int, text: str, label: Optional[str] = None) -> None:
        self.value = value
        self.text = text
        self.label = label

    def __repr__(self) -> str:
        return f"TAddr({self.value:#x})"

    def __str__(self) -> str:
        return self.label if self.label is not None else self.text
