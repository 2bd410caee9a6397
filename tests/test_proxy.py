from __future__ import annotations

import io
import socket
import struct

import pytest

from pingmc.constants import PP2_SIGNATURE
from pingmc.errors import InvalidAddress, LengthOverflow
from pingmc.proxy import ProxyHeader, SocketAddress, TransportProtocol, is_ipv6


def v4_header() -> ProxyHeader:
    return ProxyHeader(SocketAddress("127.0.0.1", 43932), SocketAddress("93.184.216.34", 25565))


def test_ipv4_layout():
    buf = v4_header().format()
    assert len(buf) == 28
    assert buf[:12] == PP2_SIGNATURE
    assert buf[12] == 0x21
    assert buf[13] == 0x11
    assert buf[14:16] == b"\x00\x0c"
    assert buf[16:20] == bytes([127, 0, 0, 1])
    assert buf[20:24] == bytes([93, 184, 216, 34])
    assert buf[24:28] == struct.pack(">HH", 43932, 25565)


def test_ipv6_layout():
    h = ProxyHeader(SocketAddress("::1", 43932), SocketAddress("2001:db8::1", 25565))
    buf = h.format()
    assert len(buf) == 16 + 36
    assert buf[13] == 0x21
    assert buf[14:16] == b"\x00\x24"
    assert buf[16:32] == socket.inet_pton(socket.AF_INET6, "::1")
    assert buf[32:48] == socket.inet_pton(socket.AF_INET6, "2001:db8::1")
    assert buf[48:52] == struct.pack(">HH", 43932, 25565)


def test_mixed_families_select_ipv6():
    h = ProxyHeader(SocketAddress("127.0.0.1", 43932), SocketAddress("2001:db8::1", 25565))
    assert h.resolved_protocol() is TransportProtocol.TCP_V6
    buf = h.format()
    assert buf[16:32] == socket.inet_pton(socket.AF_INET6, "::ffff:127.0.0.1")


def test_is_ipv6():
    assert is_ipv6("2001:db8::1")
    assert not is_ipv6("::ffff:10.0.0.1")
    assert not is_ipv6("10.0.0.1")
    assert not is_ipv6("example.org")


def test_ipv6_address_in_ipv4_header():
    h = ProxyHeader(
        SocketAddress("127.0.0.1", 1),
        SocketAddress("2001:db8::1", 2),
        transport_protocol=TransportProtocol.TCP_V4,
    )
    with pytest.raises(InvalidAddress):
        h.format()


def test_datagram_address_is_rejected():
    h = ProxyHeader(
        SocketAddress("127.0.0.1", 43932, kind=socket.SOCK_DGRAM),
        SocketAddress("93.184.216.34", 25565),
    )
    with pytest.raises(InvalidAddress):
        h.format()


def test_datagram_protocol_is_rejected():
    h = v4_header()
    h.transport_protocol = TransportProtocol.UDP_V4
    with pytest.raises(InvalidAddress):
        h.format()


def test_hostname_is_rejected():
    h = ProxyHeader(SocketAddress("127.0.0.1", 1), SocketAddress("mc.example.org", 25565))
    with pytest.raises(InvalidAddress):
        h.format()


def test_tlvs_extend_length():
    h = v4_header()
    h.append_tlv(0x02, b"mc.example.org")
    buf = h.format()
    assert struct.unpack(">H", buf[14:16])[0] == 12 + 3 + 14
    assert buf[28:] == b"\x02\x00\x0emc.example.org"


def test_length_overflow():
    h = v4_header()
    h.tlvs = b"\x00" * (0xFFFF - 12)
    assert len(h.format()) == 16 + 0xFFFF

    h.tlvs += b"\x00"
    with pytest.raises(LengthOverflow):
        h.format()


def test_write_to_writes_whole_header_once():
    class Recorder:
        def __init__(self):
            self.writes = []

        def write(self, data):
            self.writes.append(data)

    rec = Recorder()
    n = v4_header().write_to(rec)
    assert n == 28
    assert rec.writes == [v4_header().format()]


def test_write_to_writes_nothing_on_error():
    out = io.BytesIO()
    h = ProxyHeader(SocketAddress("127.0.0.1", 1, kind=socket.SOCK_DGRAM), SocketAddress("127.0.0.1", 2))
    with pytest.raises(InvalidAddress):
        h.write_to(out)
    assert out.getvalue() == b""
