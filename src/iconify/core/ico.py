from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

from iconify.core.errors import EncodingError
from iconify.core.types import MAX_ICO_DIMENSION, RasterBuffer

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
ICO_HEADER = struct.Struct("<HHH")
ICO_DIR_ENTRY = struct.Struct("<BBBBHHII")

IcoInput = Union[RasterBuffer, Tuple[int, bytes]]


@dataclass(frozen=True)
class IcoEntry:
    width: int
    height: int
    png: bytes


def png_dimensions(data: bytes) -> tuple[int, int]:
    if len(data) < 24 or not data.startswith(PNG_SIGNATURE):
        raise EncodingError("image payload is not a PNG")
    ihdr_len = struct.unpack(">I", data[8:12])[0]
    if data[12:16] != b"IHDR" or ihdr_len < 8:
        raise EncodingError("PNG payload has no IHDR chunk")
    width, height = struct.unpack(">II", data[16:24])
    return width, height


def _dimension_byte(value: int) -> int:
    # ICO directory stores 256 as 0.
    if value <= 0 or value > MAX_ICO_DIMENSION:
        raise EncodingError(f"{value}px cannot be stored in an ICO directory (max {MAX_ICO_DIMENSION})")
    return 0 if value == MAX_ICO_DIMENSION else value


def _as_pair(item: IcoInput) -> tuple[int, bytes]:
    if isinstance(item, RasterBuffer):
        return item.size, item.png
    size, png = item
    return size, png


def encode_ico(images: Sequence[IcoInput]) -> bytes:
    """Pack PNG payloads into one ICO file, keeping the caller's order.

    Payloads are embedded as-is (PNG-compressed entries); nothing is
    re-encoded. Duplicate sizes are not filtered.
    """
    if not images:
        raise EncodingError("cannot build an ICO with zero images")
    if len(images) > 0xFFFF:
        raise EncodingError("too many images for ICO format")

    header = ICO_HEADER.pack(0, 1, len(images))
    entries = bytearray()
    payload = bytearray()
    offset = ICO_HEADER.size + ICO_DIR_ENTRY.size * len(images)

    for item in images:
        size, png = _as_pair(item)
        width, height = png_dimensions(png)
        if (width, height) != (size, size):
            raise EncodingError(f"PNG is {width}x{height}, expected {size}x{size}")
        entries += ICO_DIR_ENTRY.pack(
            _dimension_byte(width),
            _dimension_byte(height),
            0,  # palette colors
            0,  # reserved
            1,  # color planes
            32,  # bits per pixel
            len(png),
            offset,
        )
        payload += png
        offset += len(png)

    return bytes(header + entries + payload)


def decode_ico(data: bytes) -> list[IcoEntry]:
    """Read the directory of an ICO file and return its PNG entries in order."""
    if len(data) < ICO_HEADER.size:
        raise EncodingError("ICO data too short")
    reserved, kind, count = ICO_HEADER.unpack_from(data, 0)
    if reserved != 0 or kind != 1:
        raise EncodingError("not an ICO file")
    if len(data) < ICO_HEADER.size + ICO_DIR_ENTRY.size * count:
        raise EncodingError("truncated ICO directory")

    out: list[IcoEntry] = []
    for i in range(count):
        w, h, _colors, _reserved, _planes, _bpp, length, offset = ICO_DIR_ENTRY.unpack_from(
            data, ICO_HEADER.size + i * ICO_DIR_ENTRY.size
        )
        if offset + length > len(data):
            raise EncodingError(f"ICO entry {i} points past end of file")
        out.append(IcoEntry(width=w or MAX_ICO_DIMENSION, height=h or MAX_ICO_DIMENSION, png=data[offset : offset + length]))
    return out
