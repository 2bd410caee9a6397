from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

from .errors import InvalidFrame, TransportError
from .net import Reader, Writer
from .varint import decode_varint, encode_varint, read_varint_from_bytes, varint_len


def pack_string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return encode_varint(len(encoded)) + encoded


def pack_ushort(value: int) -> bytes:
    return struct.pack(">H", value)


@dataclass(frozen=True, slots=True)
class Packet:
    packet_id: int
    payload: bytes = b""

    def to_bytes(self) -> bytes:
        length = varint_len(self.packet_id) + len(self.payload)
        return encode_varint(length) + encode_varint(self.packet_id) + self.payload

    def write(self, conn: Writer) -> None:
        conn.write(self.to_bytes())
        logging.debug("-> packet id=0x%02x payload=%d bytes", self.packet_id, len(self.payload))

    @staticmethod
    def from_bytes(raw: bytes) -> "Packet":
        length, offset = read_varint_from_bytes(raw)
        if length == 0:
            raise InvalidFrame("invalid packet length 0")
        if len(raw) - offset != length:
            raise InvalidFrame(f"frame declares {length} bytes, got {len(raw) - offset}")
        packet_id, id_len = read_varint_from_bytes(raw, offset)
        if id_len > length:
            raise InvalidFrame("packet id overruns frame")
        return Packet(packet_id=packet_id, payload=raw[offset + id_len :])

    @staticmethod
    def read(conn: Reader) -> "Packet":
        length = decode_varint(conn)
        if length == 0:
            raise InvalidFrame("invalid packet length 0")

        packet_id = decode_varint(conn)
        payload_len = length - varint_len(packet_id)
        if payload_len < 0:
            raise InvalidFrame(f"packet id 0x{packet_id:x} does not fit in frame of {length} bytes")

        payload = conn.read(payload_len) if payload_len else b""
        if len(payload) != payload_len:
            raise TransportError(f"connection closed after {len(payload)} of {payload_len} payload bytes")
        logging.debug("<- packet id=0x%02x payload=%d bytes", packet_id, len(payload))
        return Packet(packet_id=packet_id, payload=payload)


def write_packet(conn: Writer, packet_id: int, payload: bytes = b"") -> None:
    Packet(packet_id, payload).write(conn)


def read_packet(conn: Reader) -> Packet:
    return Packet.read(conn)
