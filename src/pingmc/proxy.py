"""PROXY protocol version 2 header encoder.

Layout of the binary preamble written ahead of the first application packet:

    signature (12) | 0x21 | family/transport (1) | length (2, BE)
    | src addr | dst addr | src port (2, BE) | dst port (2, BE) | TLVs

The length field counts everything after itself, so the header is always
assembled in memory before it is written.
"""
from __future__ import annotations

import enum
import ipaddress
import logging
import socket
import struct
from dataclasses import dataclass

from .constants import (
    PP2_ADDR_LEN_V4,
    PP2_ADDR_LEN_V6,
    PP2_MAX_LEN,
    PP2_SIGNATURE,
    PP2_VERSION_PROXY,
)
from .errors import InvalidAddress, LengthOverflow
from .net import Writer


class TransportProtocol(enum.IntEnum):
    TCP_V4 = 0x11
    UDP_V4 = 0x12
    TCP_V6 = 0x21
    UDP_V6 = 0x22

    @property
    def is_ipv4(self) -> bool:
        return self & 0xF0 == 0x10

    @property
    def is_ipv6(self) -> bool:
        return self & 0xF0 == 0x20

    @property
    def is_stream(self) -> bool:
        return self & 0x0F == 0x01


@dataclass(frozen=True, slots=True)
class SocketAddress:
    host: str
    port: int
    kind: socket.SocketKind = socket.SOCK_STREAM

    @property
    def is_stream(self) -> bool:
        return self.kind == socket.SOCK_STREAM


def is_ipv6(host: str) -> bool:
    """True for IPv6 literals that are not IPv4-mapped."""
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        return False
    return ip.version == 6 and ip.ipv4_mapped is None


def _pack_ip(host: str, proto: TransportProtocol) -> bytes:
    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        raise InvalidAddress(f"not an IP address: {host!r}") from None

    if proto.is_ipv4:
        if ip.version == 6:
            if ip.ipv4_mapped is None:
                raise InvalidAddress(f"IPv6 address {host} in an IPv4 header")
            ip = ip.ipv4_mapped
        return ip.packed

    if ip.version == 4:
        ip = ipaddress.IPv6Address(f"::ffff:{ip}")
    return ip.packed


@dataclass(slots=True)
class ProxyHeader:
    source: SocketAddress
    destination: SocketAddress
    transport_protocol: TransportProtocol | None = None
    tlvs: bytes = b""

    def resolved_protocol(self) -> TransportProtocol:
        if self.transport_protocol is not None:
            return self.transport_protocol
        if is_ipv6(self.source.host) or is_ipv6(self.destination.host):
            return TransportProtocol.TCP_V6
        return TransportProtocol.TCP_V4

    def append_tlv(self, tlv_type: int, value: bytes) -> None:
        if not 0 <= tlv_type <= 0xFF:
            raise ValueError(f"TLV type out of range: {tlv_type}")
        if len(value) > PP2_MAX_LEN:
            raise LengthOverflow(f"TLV value of {len(value)} bytes")
        self.tlvs += bytes([tlv_type]) + struct.pack(">H", len(value)) + value

    def format(self) -> bytes:
        proto = self.resolved_protocol()
        if not proto.is_stream:
            raise InvalidAddress(f"unsupported transport protocol 0x{proto:02x}")
        for addr in (self.source, self.destination):
            if not addr.is_stream:
                raise InvalidAddress(f"{addr.host}:{addr.port} is not a stream address")
            if not 0 <= addr.port <= 0xFFFF:
                raise InvalidAddress(f"port out of range: {addr.port}")

        base = PP2_ADDR_LEN_V4 if proto.is_ipv4 else PP2_ADDR_LEN_V6
        addr_len = base + len(self.tlvs)
        if addr_len > PP2_MAX_LEN:
            raise LengthOverflow(f"address block of {addr_len} bytes does not fit in 16 bits")

        return b"".join(
            [
                PP2_SIGNATURE,
                bytes([PP2_VERSION_PROXY, proto]),
                struct.pack(">H", addr_len),
                _pack_ip(self.source.host, proto),
                _pack_ip(self.destination.host, proto),
                struct.pack(">HH", self.source.port, self.destination.port),
                self.tlvs,
            ]
        )

    def write_to(self, writer: Writer) -> int:
        buf = self.format()
        writer.write(buf)
        logging.debug(
            "-> proxy header %s:%d -> %s:%d (%d bytes)",
            self.source.host,
            self.source.port,
            self.destination.host,
            self.destination.port,
            len(buf),
        )
        return len(buf)
