"""Saving a rendered frame as an uncompressed 32-bit BMP image."""

from __future__ import annotations

import os
import struct
from collections.abc import Sequence

from cubscape.scene import CubError

FILE_HEADER_SIZE = 14
INFO_HEADER_SIZE = 40
BITS_PER_PIXEL = 32
SAVE_FLAG = "--save"
CANNOT_CREATE = "Impossible de creer .bmp"

_HEADER = struct.Struct("<2sIHHIIiiHHIIiiII")


def encode_bmp(pixels: Sequence[int], width: int, height: int) -> bytes:
    """Encode row-major 0xAARRGGBB pixels as a bottom-up BMP file."""
    if width <= 0 or height <= 0:
        raise ValueError("image dimensions must be positive")
    if len(pixels) != width * height:
        raise ValueError(
            f"expected {width * height} pixels for {width}x{height}, got {len(pixels)}"
        )
    offset = FILE_HEADER_SIZE + INFO_HEADER_SIZE
    header = _HEADER.pack(
        b"BM",
        offset + 4 * width * height,
        0,
        0,
        offset,
        INFO_HEADER_SIZE,
        width,
        height,
        1,
        BITS_PER_PIXEL,
        0,
        0,
        0,
        0,
        0,
        0,
    )
    row_format = struct.Struct(f"<{width}I")
    rows = (
        row_format.pack(*(value & 0xFFFFFFFF for value in pixels[y * width : (y + 1) * width]))
        for y in reversed(range(height))
    )
    return header + b"".join(rows)


def write_bmp(
    pixels: Sequence[int], width: int, height: int, path: str | os.PathLike[str]
) -> None:
    """Write the pixels to ``path`` as a BMP file readable by everyone."""
    data = encode_bmp(pixels, width, height)
    try:
        with open(path, "wb") as stream:
            stream.write(data)
        os.chmod(path, 0o777)
    except OSError as exc:
        raise CubError(CANNOT_CREATE) from exc


def is_save_flag(arg: str) -> bool:
    """True when the argument asks for a screenshot instead of a window."""
    return arg == SAVE_FLAG