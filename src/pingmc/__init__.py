"""pingmc: Minecraft Java server list ping.

Layered the same way as the wire protocol:
- VarInt codec and length-prefixed packet framing
- optional PROXY protocol v2 preamble
- a small handshake/status/ping state machine on top

The engine works on any connected byte stream and never owns the connection.
"""

from .errors import (
    DecodeError,
    InvalidAddress,
    InvalidFrame,
    LengthOverflow,
    MalformedVarInt,
    PingError,
    TransportError,
)
from .packet import Packet, read_packet, write_packet
from .ping import PingResult, PingSession, ping
from .proxy import ProxyHeader, SocketAddress, TransportProtocol
from .status import StatusResponse
from .varint import decode_varint, encode_varint, varint_len

__all__ = [
    "DecodeError",
    "InvalidAddress",
    "InvalidFrame",
    "LengthOverflow",
    "MalformedVarInt",
    "Packet",
    "PingError",
    "PingResult",
    "PingSession",
    "ProxyHeader",
    "SocketAddress",
    "StatusResponse",
    "TransportError",
    "TransportProtocol",
    "decode_varint",
    "encode_varint",
    "ping",
    "read_packet",
    "varint_len",
    "write_packet",
]
