from __future__ import annotations

from typing import Tuple

from .constants import VARINT_CONTINUE, VARINT_MAX_BYTES, VARINT_SEGMENT
from .errors import InvalidFrame, MalformedVarInt, TransportError
from .net import Reader

_INT32_MIN = -(1 << 31)
_UINT32_LIMIT = 1 << 32


def _as_unsigned(value: int) -> int:
    if not _INT32_MIN <= value < _UINT32_LIMIT:
        raise ValueError(f"value out of 32-bit range: {value}")
    return value & 0xFFFFFFFF


def varint_len(value: int) -> int:
    value = _as_unsigned(value)
    for i in range(1, VARINT_MAX_BYTES):
        if value < 1 << (7 * i):
            return i
    return VARINT_MAX_BYTES


def encode_varint(value: int) -> bytes:
    """Encode an int32 (or its unsigned bit pattern) as 1-5 VarInt bytes."""
    value = _as_unsigned(value)
    out = bytearray()
    while True:
        byte = value & VARINT_SEGMENT
        value >>= 7
        if value:
            byte |= VARINT_CONTINUE
        out.append(byte)
        if not value:
            return bytes(out)


def decode_varint(stream: Reader) -> int:
    """Read a VarInt one byte at a time; the result is an unsigned 32-bit int."""
    result = 0
    for i in range(VARINT_MAX_BYTES):
        raw = stream.read(1)
        if not raw:
            raise TransportError("connection closed while reading VarInt")
        b = raw[0]
        result |= (b & VARINT_SEGMENT) << (7 * i)
        if not b & VARINT_CONTINUE:
            return result & 0xFFFFFFFF
    raise MalformedVarInt(f"VarInt longer than {VARINT_MAX_BYTES} bytes")


def read_varint_from_bytes(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """Decode a VarInt from an in-memory buffer, returning (value, bytes consumed)."""
    result = 0
    for i in range(VARINT_MAX_BYTES):
        if offset + i >= len(data):
            raise InvalidFrame("truncated VarInt")
        b = data[offset + i]
        result |= (b & VARINT_SEGMENT) << (7 * i)
        if not b & VARINT_CONTINUE:
            return result & 0xFFFFFFFF, i + 1
    raise MalformedVarInt(f"VarInt longer than {VARINT_MAX_BYTES} bytes")
