"""Operand renderer protocol and the renderers shared by all architectures."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from ..xref import FORMAT_ADDR, RefKind

if TYPE_CHECKING:
    from .context import DecodeContext


class OperandRenderer(Protocol):
    def __call__(self, ctx: "DecodeContext", opc: int, xref: RefKind) -> None: ...


def sign_extend(value: int, bits: int) -> int:
    """Interpret the low ``bits`` of ``value`` as a two's complement number."""

    sign_bit = 1 << (bits - 1)
    value &= (1 << bits) - 1
    return (value ^ sign_bit) - sign_bit


def relative_target(base: int, disp: int, bits: int, address_bits: int = 16) -> int:
    return (base + sign_extend(disp, bits)) & ((1 << address_bits) - 1)


def none(ctx: "DecodeContext", opc: int, xref: RefKind) -> None:
    """Operand-less instruction."""


def literal(text: str) -> OperandRenderer:
    def render(ctx: "DecodeContext", opc: int, xref: RefKind) -> None:
        ctx.operand(text)

    return render


def seq(*renderers: OperandRenderer, sep: str = ", ") -> OperandRenderer:
    """Run ``renderers`` left to right, separated by ``sep``."""

    def render(ctx: "DecodeContext", opc: int, xref: RefKind) -> None:
        for index, renderer in enumerate(renderers):
            if index:
                ctx.out.sep(sep)
            renderer(ctx, opc, xref)

    return render


def imm8(template: str = "#$%02X") -> OperandRenderer:
    def render(ctx: "DecodeContext", opc: int, xref: RefKind) -> None:
        ctx.operand(template, ctx.cursor.read_u8())

    return render


def abs16(fmt: str = FORMAT_ADDR, wrap: str = "%s") -> OperandRenderer:
    """16-bit address operand, substituted by its label when one exists."""

    def render(ctx: "DecodeContext", opc: int, xref: RefKind) -> None:
        ctx.address(ctx.cursor.read_word(), fmt, xref, wrap)

    return render


def rel8(fmt: str = FORMAT_ADDR, wrap: str = "%s") -> OperandRenderer:
    """8-bit displacement relative to the address after the operand."""

    def render(ctx: "DecodeContext", opc: int, xref: RefKind) -> None:
        disp = ctx.cursor.read_u8()
        ctx.address(relative_target(ctx.addr, disp, 8), fmt, xref, wrap)

    return render


def rel16(fmt: str = FORMAT_ADDR, wrap: str = "%s") -> OperandRenderer:
    def render(ctx: "DecodeContext", opc: int, xref: RefKind) -> None:
        disp = ctx.cursor.read_word()
        ctx.address(relative_target(ctx.addr, disp, 16), fmt, xref, wrap)

    return render


def deferred(template: str) -> OperandRenderer:
    """Format one unit popped from the deferred stack."""

    def render(ctx: "DecodeContext", opc: int, xref: RefKind) -> None:
        ctx.operand(template, ctx.pop())

    return render


__all__ = [
    "OperandRenderer",
    "abs16",
    "deferred",
    "imm8",
    "literal",
    "none",
    "rel16",
    "rel8",
    "relative_target",
    "seq",
    "sign_extend",
]
