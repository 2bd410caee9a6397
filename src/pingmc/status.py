from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, List

from .chat import Message, PlainText, parse_message, render_plain
from .errors import DecodeError


@dataclass(frozen=True, slots=True)
class Version:
    name: str = ""
    protocol: int = 0


@dataclass(frozen=True, slots=True)
class PlayerSample:
    name: str
    id: str = ""


@dataclass(frozen=True, slots=True)
class Players:
    max: int = 0
    online: int = 0
    sample: List[PlayerSample] = field(default_factory=list)


def _section(doc: dict, key: str) -> dict:
    value = doc.get(key) or {}
    if not isinstance(value, dict):
        raise DecodeError(f"{key!r} must be an object")
    return value


def _int(obj: dict, key: str) -> int:
    value = obj.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"{key!r} must be an integer, got {value!r}")
    return value


@dataclass(frozen=True, slots=True)
class StatusResponse:
    version: Version
    players: Players
    description: Message = PlainText("")
    favicon: str | None = None

    @staticmethod
    def from_payload(payload: bytes) -> "StatusResponse":
        """Decode the JSON document carried by a status-response packet.

        The payload normally starts with a VarInt string length, and some
        servers prepend other bytes as well. The length prefix can itself be
        a ``{`` byte, so each ``{`` is tried in turn and the first one that
        opens a JSON object wins.
        """
        decoder = json.JSONDecoder()
        error: Exception | None = None
        start = payload.find(b"{")
        while start >= 0:
            try:
                doc, _ = decoder.raw_decode(payload[start:].decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                error = e
            else:
                if isinstance(doc, dict):
                    return StatusResponse.from_dict(doc)
            start = payload.find(b"{", start + 1)

        if error is None:
            raise DecodeError("no JSON document in status response")
        raise DecodeError(f"invalid status document: {error}") from error

    @staticmethod
    def from_dict(doc: dict) -> "StatusResponse":
        version = _section(doc, "version")
        players = _section(doc, "players")

        sample = []
        for entry in players.get("sample") or []:
            if not isinstance(entry, dict) or not isinstance(entry.get("name", ""), str):
                raise DecodeError(f"invalid player sample entry: {entry!r}")
            sample.append(PlayerSample(name=entry.get("name", ""), id=str(entry.get("id", ""))))

        name = version.get("name")
        if name is None:
            name = ""
        if not isinstance(name, str):
            raise DecodeError("version name must be a string")

        description = doc.get("description")
        if description is None:
            description = ""

        favicon = doc.get("favicon")
        if favicon is not None and not isinstance(favicon, str):
            raise DecodeError("favicon must be a string")

        return StatusResponse(
            version=Version(name=name, protocol=_int(version, "protocol")),
            players=Players(max=_int(players, "max"), online=_int(players, "online"), sample=sample),
            description=parse_message(description),
            favicon=favicon,
        )

    def favicon_png(self) -> bytes | None:
        """Raw PNG bytes of the ``data:image/png;base64,...`` favicon, if any."""
        if not self.favicon or "," not in self.favicon:
            return None
        try:
            return base64.b64decode(self.favicon.split(",", 1)[1], validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"invalid favicon data: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": {"name": self.version.name, "protocol": self.version.protocol},
            "players": {
                "max": self.players.max,
                "online": self.players.online,
                "sample": [{"name": p.name, "id": p.id} for p in self.players.sample],
            },
            "description": render_plain(self.description),
            "has_favicon": self.favicon is not None,
        }
