"""Reading XPM images into 32-bit pixel grids."""

from __future__ import annotations

import os
import re
from collections.abc import Iterator
from dataclasses import dataclass

from cubscape.colors import lookup_color

TRANSPARENT = 0xFF000000
"""Pixel value given to the ``None`` colour."""

_NAME_BUFFER = 63
_LONG_MAX = 2**63 - 1
_LONG_MIN = -(2**63)
_WORD_SPLIT = re.compile(r"[ \t]+")
_HEX_RUN = re.compile(r"[0-9a-fA-F]*")
_DECIMAL = re.compile(r"[ \t\n\r\v\f]*([+-]?[0-9]+)")


class XpmError(ValueError):
    """An XPM image that cannot be read."""


@dataclass(frozen=True)
class Image:
    """A decoded image: row-major 0xAARRGGBB pixels."""

    width: int
    height: int
    pixels: tuple[int, ...]

    def pixel(self, x: int, y: int) -> int:
        """Return the pixel in column ``x`` of row ``y``."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return self.pixels[y * self.width + x]


def _find_unquoted(text: str, token: str) -> int:
    inside = False
    for index, ch in enumerate(text):
        if len(text) - index < len(token):
            break
        if ch == '"':
            inside = not inside
        if not inside and text.startswith(token, index):
            return index
    return -1


def _blank(text: str, start: int, length: int) -> str:
    end = min(len(text), start + length)
    return text[:start] + " " * (end - start) + text[end:]


def strip_comments(text: str) -> str:
    """Replace C comments outside string literals with spaces.

    The result has the same length as ``text``.
    """
    while (begin := _find_unquoted(text, "/*")) >= 0:
        close = text.find("*/", begin + 2)
        text = _blank(text, begin, close - begin + 2 if close >= 0 else 3)
    while (begin := _find_unquoted(text, "//")) >= 0:
        close = text.find("\n", begin + 2)
        text = _blank(text, begin, close - begin + 1 if close >= 0 else 2)
    return text


def _hex_value(text: str) -> int:
    rest = text.lstrip(" \t\n\r\v\f")
    sign = 1
    if rest and rest[0] in "+-":
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if rest[:2] in ("0x", "0X") and len(rest) > 2 and _HEX_RUN.match(rest, 2).group():
        rest = rest[2:]
    digits = _HEX_RUN.match(rest).group()
    value = int(digits, 16) if digits else 0
    if value > _LONG_MAX:
        value = _LONG_MAX if sign > 0 else _LONG_MIN
    else:
        value *= sign
    return (value + 2**31) % 2**32 - 2**31


def color_from_text(name: str, end: str | None) -> int:
    """Resolve an XPM colour specification to a signed 32-bit value.

    ``#`` introduces a hexadecimal value; otherwise ``name`` (joined to
    ``end`` by a space when given) is looked up in the colour table.
    ``None`` gives -1 and unknown names give 0.
    """
    if name.startswith("#"):
        return _hex_value(name[1:])
    if end is not None:
        name = f"{name} {end}"[:_NAME_BUFFER]
    value = lookup_color(name)
    return 0 if value is None else value


def _words(text: str) -> list[str]:
    return [word for word in _WORD_SPLIT.split(text) if word]


def _atoi(text: str) -> int:
    match = _DECIMAL.match(text)
    return int(match.group(1)) if match else 0


def _quoted(text: str) -> Iterator[str]:
    pos = 0
    while True:
        opening = text.find('"', pos)
        if opening < 0:
            return
        closing = text.find('"', opening + 1)
        if closing < 0:
            return
        yield text[opening + 1 : closing]
        pos = closing + 1


def _next(strings: Iterator[str], what: str) -> str:
    line = next(strings, None)
    if line is None:
        raise XpmError(f"missing {what}")
    return line


def _read_palette(strings: Iterator[str], count: int, cpp: int) -> dict[str, int]:
    palette: dict[str, int] = {}
    for _ in range(count):
        line = _next(strings, "colour definition")
        words = _words(line[cpp:])
        try:
            spec = words.index("c") + 1
        except ValueError:
            raise XpmError(f"colour definition without 'c' key: {line!r}") from None
        if spec >= len(words):
            raise XpmError(f"colour definition without value: {line!r}")
        end = words[spec + 1] if spec + 1 < len(words) else None
        value = color_from_text(words[spec], end)
        key = line[:cpp]
        if cpp <= 2:
            palette[key] = value
        else:
            palette.setdefault(key, value)
    return palette


def parse_xpm(text: str) -> Image:
    """Decode the text of an XPM file.

    Raises XpmError when the header, a colour definition or a pixel row
    is missing or malformed.
    """
    strings = _quoted(strip_comments(text))
    fields = _words(_next(strings, "XPM header"))
    if len(fields) < 4:
        raise XpmError("XPM header needs width, height, colours and chars per pixel")
    width, height, ncolors, cpp = (_atoi(field) for field in fields[:4])
    if min(width, height, ncolors, cpp) <= 0:
        raise XpmError("XPM header values must be positive")
    palette = _read_palette(strings, ncolors, cpp)
    pixels: list[int] = []
    for _ in range(height):
        row = _next(strings, "pixel row")
        for x in range(width):
            value = palette.get(row[cpp * x : cpp * (x + 1)], 0)
            pixels.append(TRANSPARENT if value == -1 else value & 0xFFFFFFFF)
    return Image(width=width, height=height, pixels=tuple(pixels))


def load_xpm(path: str | os.PathLike[str]) -> Image:
    """Read and decode the XPM file at ``path``."""
    try:
        with open(path, "rb") as stream:
            raw = stream.read()
    except OSError as exc:
        raise XpmError(f"cannot read {os.fspath(path)}") from exc
    return parse_xpm(raw.decode("latin-1"))