from __future__ import annotations

import logging
import socket
from typing import Protocol, Tuple

from .constants import DEFAULT_PORT, DEFAULT_TIMEOUT_MS
from .errors import TransportError

RECV_CHUNK = 65536


class Reader(Protocol):
    def read(self, n: int) -> bytes: ...


class Writer(Protocol):
    def write(self, data: bytes) -> object: ...


class Stream(Reader, Writer, Protocol):
    pass


def split_host_port(target: str, default_port: int = DEFAULT_PORT) -> Tuple[str, int]:
    """Split ``host``, ``host:port``, ``[v6]:port`` or a bare IPv6 literal."""
    port_str: str | None = None
    if target.startswith("["):
        end = target.find("]")
        if end < 0:
            raise ValueError(f"missing ']' in address: {target}")
        host, rest = target[1:end], target[end + 1 :]
        if rest:
            if not rest.startswith(":"):
                raise ValueError(f"unexpected text after address: {target}")
            port_str = rest[1:]
    elif target.count(":") == 1:
        host, port_str = target.split(":")
    else:
        # plain hostname, IPv4 literal or unbracketed IPv6 literal
        host = target

    if not host:
        raise ValueError(f"missing host in address: {target}")
    if port_str is None:
        return host, default_port
    if not (port_str.isascii() and port_str.isdigit()) or int(port_str) > 0xFFFF:
        raise ValueError(f"invalid port: {port_str!r}")
    return host, int(port_str)


class TcpConnection:
    """Blocking TCP stream with exact reads; socket failures surface as TransportError."""

    def __init__(self, sock: socket.socket):
        self.sock = sock

    @classmethod
    def connect(
        cls,
        host: str,
        port: int,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        family: int = socket.AF_UNSPEC,
    ) -> "TcpConnection":
        try:
            infos = socket.getaddrinfo(host, port, family, socket.SOCK_STREAM)
        except OSError as e:
            raise TransportError(f"cannot resolve {host}: {e}") from e

        last_error: OSError | None = None
        for af, socktype, proto, _, addr in infos:
            sock = socket.socket(af, socktype, proto)
            if timeout_ms > 0:
                sock.settimeout(timeout_ms / 1000.0)
            try:
                sock.connect(addr)
            except OSError as e:
                logging.debug("connect to %s failed: %s", addr, e)
                sock.close()
                last_error = e
                continue
            logging.debug("connected to %s", addr)
            return cls(sock)
        raise TransportError(f"cannot connect to {host}:{port}: {last_error}")

    def read(self, n: int) -> bytes:
        buf = bytearray()
        while len(buf) < n:
            try:
                chunk = self.sock.recv(min(n - len(buf), RECV_CHUNK))
            except OSError as e:
                raise TransportError(f"read failed: {e}") from e
            if not chunk:
                raise TransportError(f"connection closed after {len(buf)} of {n} bytes")
            buf.extend(chunk)
        return bytes(buf)

    def write(self, data: bytes) -> int:
        try:
            self.sock.sendall(data)
        except OSError as e:
            raise TransportError(f"write failed: {e}") from e
        return len(data)

    def peer_address(self) -> Tuple[str, int]:
        host, port = self.sock.getpeername()[:2]
        return host, port

    def close(self) -> None:
        self.sock.close()

    def __enter__(self) -> "TcpConnection":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
