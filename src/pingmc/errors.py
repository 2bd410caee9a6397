from __future__ import annotations


class PingError(Exception):
    """Base class for everything that can abort a ping session."""


class TransportError(PingError):
    """The connection failed, timed out or was closed by the peer."""


class ProtocolError(PingError):
    pass


class MalformedVarInt(ProtocolError):
    pass


class InvalidFrame(ProtocolError):
    pass


class DecodeError(ProtocolError):
    """The status document could not be parsed."""


class ProxyHeaderError(PingError):
    pass


class InvalidAddress(ProxyHeaderError):
    pass


class LengthOverflow(ProxyHeaderError):
    pass
