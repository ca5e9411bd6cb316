from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import BufferTooShort, TableError


@dataclass
class StreamCursor:
    """
    Sequential reader over the input bytes.

    `addr` is the address of the next unread byte. Every fetched unit is
    appended to the capture buffer of the instruction being decoded, up to
    `max_insn_length` bytes, so the listing can show the raw bytes.
    """

    data: bytes
    addr: int = 0
    unit_width: int = 1
    msb_first: bool = False
    max_insn_length: int = 8
    idx: int = 0
    _capture: bytearray = field(default_factory=bytearray, init=False)

    def __post_init__(self) -> None:
        if self.unit_width not in (1, 2):
            raise TableError(f"unsupported instruction unit width {self.unit_width}")

    def _require(self, count: int) -> None:
        if self.idx + count > len(self.data):
            raise BufferTooShort(self.addr)

    def _combine(self, raw: bytes) -> int:
        return int.from_bytes(raw, "big" if self.msb_first else "little")

    def _take(self, count: int) -> bytes:
        self._require(count)
        raw = self.data[self.idx : self.idx + count]
        self.idx += count
        self.addr += count
        room = self.max_insn_length - len(self._capture)
        if room > 0:
            self._capture += raw[:room]
        return raw

    # ---- unit access ----

    def fetch(self) -> int:
        """Consume one instruction unit (one or two bytes)."""

        return self._combine(self._take(self.unit_width))

    def peek(self) -> int:
        """Return the unit the next `fetch()` would return without consuming it."""

        self._require(self.unit_width)
        return self._combine(self.data[self.idx : self.idx + self.unit_width])

    # ---- byte access for operand renderers and data dumps ----

    def read_u8(self) -> int:
        return self._take(1)[0]

    def read_s8(self) -> int:
        raw = self.read_u8()
        return raw - 0x100 if raw & 0x80 else raw

    def read_word(self) -> int:
        """Read a 16-bit value in the profile's byte order."""

        return self._combine(self._take(2))

    # ---- bookkeeping ----

    def current_address(self) -> int:
        return self.addr

    def begin_instruction(self) -> None:
        self._capture.clear()

    def captured(self) -> bytes:
        return bytes(self._capture)

    def remaining(self) -> int:
        return len(self.data) - self.idx

    def at_end(self) -> bool:
        return self.idx >= len(self.data)
