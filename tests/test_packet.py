from __future__ import annotations

import io

import pytest

from pingmc.errors import InvalidFrame, TransportError
from pingmc.packet import Packet, pack_string, pack_ushort, read_packet, write_packet


class Pipe:
    def __init__(self, incoming: bytes = b""):
        self.incoming = io.BytesIO(incoming)
        self.outgoing = bytearray()

    def read(self, n: int) -> bytes:
        return self.incoming.read(n)

    def write(self, data: bytes) -> int:
        self.outgoing.extend(data)
        return len(data)


@pytest.mark.parametrize("packet_id", [0, 1, 300, 2147483647])
@pytest.mark.parametrize("size", [0, 1, 1024])
def test_roundtrip(packet_id, size):
    payload = bytes(range(256)) * 4
    payload = payload[:size]
    out = Pipe()
    write_packet(out, packet_id, payload)

    p = read_packet(Pipe(bytes(out.outgoing)))
    assert p.packet_id == packet_id
    assert p.payload == payload


def test_wire_layout():
    out = Pipe()
    write_packet(out, 0x00)
    assert bytes(out.outgoing) == b"\x01\x00"

    out = Pipe()
    write_packet(out, 300, b"xy")
    assert bytes(out.outgoing) == b"\x04\xac\x02xy"


def test_zero_length_frame():
    with pytest.raises(InvalidFrame):
        read_packet(Pipe(b"\x00\x00"))


def test_packet_id_longer_than_frame():
    # declared length 1, but id 300 takes two bytes
    with pytest.raises(InvalidFrame):
        read_packet(Pipe(b"\x01\xac\x02"))


def test_short_payload_is_transport_error():
    with pytest.raises(TransportError):
        read_packet(Pipe(b"\x05\x00ab"))


def test_reads_one_frame_at_a_time():
    pipe = Pipe(Packet(0, b"first").to_bytes() + Packet(1, b"second").to_bytes())
    assert read_packet(pipe) == Packet(0, b"first")
    assert read_packet(pipe) == Packet(1, b"second")


def test_from_bytes():
    raw = Packet(0x01, b"12345678").to_bytes()
    assert Packet.from_bytes(raw) == Packet(0x01, b"12345678")

    with pytest.raises(InvalidFrame):
        Packet.from_bytes(raw + b"x")
    with pytest.raises(InvalidFrame):
        Packet.from_bytes(b"\x00")


def test_field_helpers():
    assert pack_string("") == b"\x00"
    assert pack_string("é") == b"\x02\xc3\xa9"
    assert pack_ushort(25565) == b"\x63\xdd"
