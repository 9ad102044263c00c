"""Little-endian field codec for instruction payloads and account data.

Layout rules match the program's serializer: integers are fixed-width
little-endian with no padding, strings and vectors carry a u32 length prefix.
"""

from __future__ import annotations

import struct
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable, List

from .constants import I64_MAX, I64_MIN, PUBKEY_SIZE, U8_MAX, U16_MAX, U32_MAX, U64_MAX
from .errors import EncodingError


def _check_range(value: int, low: int, high: int, kind: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{kind} value must be an integer, got {type(value).__name__}")
    if value < low or value > high:
        raise EncodingError(f"{kind} value {value} out of range [{low}, {high}]")
    return value


# ── Encoding ───────────────────────────────────────────────────────


def encode_u8(value: int) -> bytes:
    return struct.pack("<B", _check_range(value, 0, U8_MAX, "u8"))


def encode_u16(value: int) -> bytes:
    return struct.pack("<H", _check_range(value, 0, U16_MAX, "u16"))


def encode_u32(value: int) -> bytes:
    return struct.pack("<I", _check_range(value, 0, U32_MAX, "u32"))


def encode_u64(value: int) -> bytes:
    return struct.pack("<Q", _check_range(value, 0, U64_MAX, "u64"))


def encode_i64(value: int) -> bytes:
    return struct.pack("<q", _check_range(value, I64_MIN, I64_MAX, "i64"))


def encode_string(value: str) -> bytes:
    if not isinstance(value, str):
        raise EncodingError(f"string value expected, got {type(value).__name__}")
    data = value.encode("utf-8")
    return encode_u32(len(data)) + data


def encode_u32_vec(values: Iterable[int]) -> bytes:
    items = list(values)
    out = bytearray(encode_u32(len(items)))
    for item in items:
        out += encode_u32(item)
    return bytes(out)


# ── Decoding ───────────────────────────────────────────────────────


class Reader:
    """Forward-only cursor over a byte buffer.

    Every read checks the remaining length first and raises EncodingError
    instead of returning a short slice.
    """

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self._data = bytes(data)
        if offset < 0 or offset > len(self._data):
            raise EncodingError(f"offset {offset} outside buffer of {len(self._data)} bytes")
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def take(self, size: int) -> bytes:
        if size < 0:
            raise EncodingError(f"negative read size {size}")
        if size > self.remaining:
            raise EncodingError(
                f"need {size} bytes at offset {self.offset}, only {self.remaining} remain"
            )
        chunk = self._data[self.offset : self.offset + size]
        self.offset += size
        return chunk

    def skip(self, size: int) -> None:
        self.take(size)

    def _unpack(self, fmt: str) -> int:
        size = struct.calcsize(fmt)
        (value,) = struct.unpack(fmt, self.take(size))
        return value

    def u8(self) -> int:
        return self._unpack("<B")

    def u16(self) -> int:
        return self._unpack("<H")

    def u32(self) -> int:
        return self._unpack("<I")

    def u64(self) -> int:
        return self._unpack("<Q")

    def i64(self) -> int:
        return self._unpack("<q")

    def flag(self) -> bool:
        value = self.u8()
        if value not in (0, 1):
            raise EncodingError(f"invalid bool byte {value} at offset {self.offset - 1}")
        return value == 1

    def pubkey_bytes(self) -> bytes:
        return self.take(PUBKEY_SIZE)

    def string(self) -> str:
        length = self.u32()
        if length > self.remaining:
            raise EncodingError(
                f"string length {length} exceeds remaining {self.remaining} bytes"
            )
        raw = self.take(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise EncodingError(f"string is not valid UTF-8: {exc}") from exc

    def u32_vec(self) -> List[int]:
        count = self.u32()
        if count * 4 > self.remaining:
            raise EncodingError(
                f"vector of {count} u32 exceeds remaining {self.remaining} bytes"
            )
        return [self.u32() for _ in range(count)]


def decode_string(data: bytes) -> str:
    return Reader(data).string()


def decode_u16(data: bytes) -> int:
    return Reader(data).u16()


def decode_u64(data: bytes) -> int:
    return Reader(data).u64()


def decode_i64(data: bytes) -> int:
    return Reader(data).i64()


def decode_u32_vec(data: bytes) -> List[int]:
    return Reader(data).u32_vec()


def to_minor_units(amount: float | int | str, decimals: int) -> int:
    """Convert a decimal token amount to raw integer units.

    Uses Decimal arithmetic so ``10.0`` with 6 decimals is exactly 10_000_000.
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation as exc:
        raise EncodingError(f"invalid token amount {amount!r}") from exc
    if not value.is_finite():
        raise EncodingError(f"invalid token amount {amount!r}")
    scaled = (value * (Decimal(10) ** decimals)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return _check_range(int(scaled), 0, U64_MAX, "u64")


def from_minor_units(raw: int, decimals: int) -> Decimal:
    """Exact decimal view of a raw token amount."""
    return Decimal(raw).scaleb(-decimals)
