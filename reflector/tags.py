# reflector/tags.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
"""
Struct tag parsing.

A tag is a single string of space separated ``key:"value"`` pairs. Values
are double quoted and may contain backslash escapes. Parsing never raises:
a malformed fragment ends the scan and everything parsed before it is kept.
"""

import logging
from typing import Iterator, List, Tuple

from reflector.types import TagMap

logger = logging.getLogger(__name__)

_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    '"': '"',
    "'": "'",
}
_HEX_ESCAPES = {"x": 2, "u": 4, "U": 8}
_OCTAL_DIGITS = "01234567"
_HEX_DIGITS = "0123456789abcdefABCDEF"


def _is_key_char(ch: str) -> bool:
    return ch > " " and ch not in (":", '"', "\x7f")


def _unquote(quoted: str) -> str:
    """
    Decode a double-quoted tag value, including the surrounding quotes.

    :raises ValueError: On an invalid escape or a raw newline.
    """
    body = quoted[1:-1]
    out = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\n":
            raise ValueError("newline in quoted value")
        if ch != "\\":
            out.append(ch)
            i += 1
            continue
        if i + 1 >= len(body):
            raise ValueError("trailing backslash")
        esc = body[i + 1]
        if esc in _SIMPLE_ESCAPES:
            out.append(_SIMPLE_ESCAPES[esc])
            i += 2
        elif esc in _HEX_ESCAPES:
            width = _HEX_ESCAPES[esc]
            digits = body[i + 2 : i + 2 + width]
            if len(digits) != width or any(d not in _HEX_DIGITS for d in digits):
                raise ValueError(f"bad \\{esc} escape")
            code = int(digits, 16)
            if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                raise ValueError(f"invalid code point in \\{esc} escape")
            out.append(chr(code))
            i += 2 + width
        elif esc in _OCTAL_DIGITS:
            digits = body[i + 1 : i + 4]
            if len(digits) != 3 or any(d not in _OCTAL_DIGITS for d in digits):
                raise ValueError("bad octal escape")
            code = int(digits, 8)
            if code > 0xFF:
                raise ValueError("octal escape out of range")
            out.append(chr(code))
            i += 4
        else:
            raise ValueError(f"unknown escape \\{esc}")
    return "".join(out)


def iter_tag(tag: str) -> Iterator[Tuple[str, str]]:
    """Yield ``(key, value)`` pairs in order of appearance."""
    rest = tag
    while rest:
        rest = rest.lstrip(" ")
        if not rest:
            return

        i = 0
        while i < len(rest) and _is_key_char(rest[i]):
            i += 1
        if i == 0 or i + 1 >= len(rest) or rest[i] != ":" or rest[i + 1] != '"':
            logger.debug("Stopped parsing tag %r at %r", tag, rest)
            return
        key = rest[:i]
        rest = rest[i + 1 :]

        # Scan the quoted string, skipping escaped characters.
        i = 1
        while i < len(rest) and rest[i] != '"':
            if rest[i] == "\\":
                i += 1
            i += 1
        if i >= len(rest):
            logger.debug("Unterminated value for key %r in tag %r", key, tag)
            return
        quoted = rest[: i + 1]
        rest = rest[i + 1 :]

        try:
            value = _unquote(quoted)
        except ValueError as e:
            logger.debug("Cannot unquote value for key %r in tag %r: %s", key, tag, e)
            return
        yield key, value


def parse_tag(tag: str) -> TagMap:
    """Parse a raw tag into a mapping. A repeated key keeps its last value."""
    return dict(iter_tag(tag))


def lookup_tag(tag: str, key: str) -> str:
    """
    Value of the first occurrence of ``key``, or an empty string.

    The scan stops at the first malformed pair whatever its key, so a key
    declared after a malformed pair is not found.
    """
    for name, value in iter_tag(tag):
        if name == key:
            return value
    return ""


def expand_tag_value(value: str) -> List[str]:
    """Split a tag value on commas. An empty value yields ``[""]``."""
    return value.split(",")
