"""Chat components as they appear in the status description.

A message on the wire is either a bare JSON string or a JSON object with
style flags and ``extra`` children, so it is modeled as ``PlainText`` or
``ChatComponent``. Both render to ANSI terminal text, with legacy ``§x``
format codes translated along the way.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Tuple, Union

from .errors import DecodeError

RESET = "\033[0m"

COLORS = {
    "black": "30",
    "dark_blue": "34",
    "dark_green": "32",
    "dark_aqua": "36",
    "dark_red": "31",
    "dark_purple": "35",
    "gold": "33",
    "gray": "37",
    "dark_gray": "90",
    "blue": "94",
    "green": "92",
    "aqua": "96",
    "red": "91",
    "light_purple": "95",
    "yellow": "93",
    "white": "97",
}

FORMAT_CODES = {
    "0": "30",
    "1": "34",
    "2": "32",
    "3": "36",
    "4": "31",
    "5": "35",
    "6": "33",
    "7": "37",
    "8": "90",
    "9": "94",
    "a": "92",
    "b": "96",
    "c": "91",
    "d": "95",
    "e": "93",
    "f": "97",
    "k": "",  # obfuscated, no terminal equivalent
    "l": "1",
    "m": "9",
    "n": "4",
    "o": "3",
    "r": "0",
}

_FORMAT_PATTERN = re.compile(r"§([0-9a-fk-or])", re.IGNORECASE)
_HEX_COLOR = re.compile(r"#([0-9a-fA-F]{6})")


@dataclass(frozen=True, slots=True)
class PlainText:
    text: str


@dataclass(frozen=True, slots=True)
class ChatComponent:
    text: str = ""
    bold: bool = False
    italic: bool = False
    underlined: bool = False
    strikethrough: bool = False
    obfuscated: bool = False
    color: str | None = None
    extra: Tuple["Message", ...] = ()

    @staticmethod
    def from_dict(obj: dict) -> "ChatComponent":
        text = obj.get("text", "")
        if not isinstance(text, str):
            raise DecodeError(f"chat text must be a string, got {type(text).__name__}")
        color = obj.get("color")
        if color is not None and not isinstance(color, str):
            raise DecodeError("chat color must be a string")
        extra = obj.get("extra") or []
        if not isinstance(extra, list):
            raise DecodeError("chat extra must be a list")
        return ChatComponent(
            text=text,
            bold=bool(obj.get("bold", False)),
            italic=bool(obj.get("italic", False)),
            underlined=bool(obj.get("underlined", False)),
            strikethrough=bool(obj.get("strikethrough", False)),
            obfuscated=bool(obj.get("obfuscated", False)),
            color=color,
            extra=tuple(parse_message(e) for e in extra),
        )


Message = Union[PlainText, ChatComponent]


def parse_message(value: Any) -> Message:
    """Decode a JSON value: a string first, then an object, otherwise fail."""
    if isinstance(value, str):
        return PlainText(value)
    if isinstance(value, dict):
        return ChatComponent.from_dict(value)
    raise DecodeError(f"message must be a string or an object, got {type(value).__name__}")


def translate_codes(text: str, ansi: bool = True) -> Tuple[str, bool]:
    """Replace ``§x`` codes with ANSI sequences, or strip them when ``ansi`` is false.

    The flag is true when at least one ANSI sequence was emitted.
    """
    changed = False

    def repl(m: re.Match) -> str:
        nonlocal changed
        code = FORMAT_CODES[m.group(1).lower()]
        if not ansi or not code:
            return ""
        changed = True
        return f"\033[{code}m"

    return _FORMAT_PATTERN.sub(repl, text), changed


def _color_code(color: str) -> str | None:
    if color in COLORS:
        return COLORS[color]
    m = _HEX_COLOR.fullmatch(color)
    if m:
        rgb = bytes.fromhex(m.group(1))
        return f"38;2;{rgb[0]};{rgb[1]};{rgb[2]}"
    return None


def render_ansi(msg: Message) -> str:
    if isinstance(msg, PlainText):
        text, changed = translate_codes(msg.text)
        return text + RESET if changed else text

    styles = []
    if msg.bold:
        styles.append("1")
    if msg.italic:
        styles.append("3")
    if msg.underlined:
        styles.append("4")
    if msg.strikethrough:
        styles.append("9")
    if msg.color:
        code = _color_code(msg.color)
        if code:
            styles.append(code)

    out = []
    if styles:
        out.append(f"\033[{';'.join(styles)}m")
    text, changed = translate_codes(msg.text)
    out.append(text)
    out.extend(render_ansi(e) for e in msg.extra)
    if styles or changed:
        out.append(RESET)
    return "".join(out)


def render_plain(msg: Message) -> str:
    text, _ = translate_codes(msg.text, ansi=False)
    if isinstance(msg, PlainText):
        return text
    return text + "".join(render_plain(e) for e in msg.extra)
