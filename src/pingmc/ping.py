from __future__ import annotations

import enum
import logging
import struct
import time
from dataclasses import dataclass, field
from typing import Callable

from . import constants
from .net import Stream
from .packet import pack_string, pack_ushort, read_packet, write_packet
from .proxy import ProxyHeader
from .status import StatusResponse
from .varint import encode_varint


class PingState(enum.Enum):
    PROXY_PREAMBLE = "proxy-preamble"
    HANDSHAKE = "handshake"
    STATUS_REQUEST = "status-request"
    STATUS_RESPONSE = "status-response"
    PING = "ping"
    PONG = "pong"
    ELAPSED = "elapsed"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class PingResult:
    status: StatusResponse
    latency_ms: int
    nonce_mismatch: bool = False


def now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass(slots=True)
class PingSession:
    """One status query over an already connected stream.

    Each state has exactly one step; a step either returns the next state or
    raises a ``PingError``, which ends the session. The session never opens or
    closes ``conn``.
    """

    conn: Stream
    host: str
    port: int
    protocol_version: int = constants.DEFAULT_PROTOCOL_VERSION
    spoof: str | None = None
    proxy_header: ProxyHeader | None = None
    clock: Callable[[], int] = now_ms

    state: PingState = field(default=PingState.HANDSHAKE, init=False)
    status: StatusResponse | None = field(default=None, init=False)
    sent_at: int = field(default=0, init=False)
    nonce: bytes = field(default=b"", init=False)
    latency_ms: int = field(default=0, init=False)
    nonce_mismatch: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.state = PingState.PROXY_PREAMBLE if self.proxy_header is not None else PingState.HANDSHAKE

    def handshake_payload(self) -> bytes:
        return (
            encode_varint(self.protocol_version)
            + pack_string(self.spoof or self.host)
            + pack_ushort(self.port)
            + encode_varint(constants.NEXT_STATE_STATUS)
        )

    def _send_proxy_preamble(self) -> PingState:
        if self.proxy_header is None:
            raise RuntimeError("no proxy header configured")
        self.proxy_header.write_to(self.conn)
        return PingState.HANDSHAKE

    def _send_handshake(self) -> PingState:
        write_packet(self.conn, constants.HANDSHAKE, self.handshake_payload())
        return PingState.STATUS_REQUEST

    def _send_status_request(self) -> PingState:
        write_packet(self.conn, constants.STATUS_REQUEST)
        return PingState.STATUS_RESPONSE

    def _read_status_response(self) -> PingState:
        packet = read_packet(self.conn)
        self.status = StatusResponse.from_payload(packet.payload)
        return PingState.PING

    def _send_ping(self) -> PingState:
        self.sent_at = self.clock()
        self.nonce = struct.pack(constants.NONCE_FORMAT, self.sent_at & 0xFFFFFFFFFFFFFFFF)
        write_packet(self.conn, constants.PING, self.nonce)
        return PingState.PONG

    def _read_pong(self) -> PingState:
        packet = read_packet(self.conn)
        if packet.payload != self.nonce:
            self.nonce_mismatch = True
            logging.warning(
                "invalid pong response: sent %s, got %s", self.nonce.hex(), packet.payload.hex()
            )
        return PingState.ELAPSED

    def _measure_elapsed(self) -> PingState:
        self.latency_ms = self.clock() - self.sent_at
        return PingState.DONE

    def step(self) -> PingState:
        """Run the current state's step and move to the state it returns."""
        steps = {
            PingState.PROXY_PREAMBLE: self._send_proxy_preamble,
            PingState.HANDSHAKE: self._send_handshake,
            PingState.STATUS_REQUEST: self._send_status_request,
            PingState.STATUS_RESPONSE: self._read_status_response,
            PingState.PING: self._send_ping,
            PingState.PONG: self._read_pong,
            PingState.ELAPSED: self._measure_elapsed,
        }
        if self.state not in steps:
            raise RuntimeError(f"session already finished ({self.state.value})")
        logging.debug("ping state: %s", self.state.value)
        self.state = steps[self.state]()
        return self.state

    def result(self) -> PingResult:
        if self.state is not PingState.DONE or self.status is None:
            raise RuntimeError(f"session not finished ({self.state.value})")
        return PingResult(self.status, self.latency_ms, self.nonce_mismatch)

    def run(self) -> PingResult:
        while self.state is not PingState.DONE:
            self.step()
        logging.info(
            "%s:%d answered in %d ms (nonce_mismatch=%s)",
            self.host,
            self.port,
            self.latency_ms,
            self.nonce_mismatch,
        )
        return self.result()


def ping(
    conn: Stream,
    host: str,
    port: int,
    protocol_version: int = constants.DEFAULT_PROTOCOL_VERSION,
    spoof: str | None = None,
    proxy_header: ProxyHeader | None = None,
) -> PingResult:
    return PingSession(conn, host, port, protocol_version, spoof, proxy_header).run()
