from __future__ import annotations

VARINT_MAX_BYTES = 5
VARINT_CONTINUE = 0x80
VARINT_SEGMENT = 0x7F

HANDSHAKE = 0x00
STATUS_REQUEST = 0x00
PING = 0x01

NEXT_STATE_STATUS = 1

NONCE_FORMAT = "<Q"  # client clock in ms, echoed verbatim

PP2_SIGNATURE = b"\x0D\x0A\x0D\x0A\x00\x0D\x0A\x51\x55\x49\x54\x0A"
PP2_VERSION_PROXY = 0x21  # version 2, PROXY command
PP2_ADDR_LEN_V4 = 12
PP2_ADDR_LEN_V6 = 36
PP2_MAX_LEN = 0xFFFF

DEFAULT_PORT = 25565
DEFAULT_PROTOCOL_VERSION = 766
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_PROXY_SOURCE = ("127.0.0.1", 43932)
