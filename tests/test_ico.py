from __future__ import annotations

import io
import struct

import pytest
from PIL import Image

from iconify.core.errors import EncodingError
from iconify.core.ico import decode_ico, encode_ico, png_dimensions
from iconify.core.resample import resample
from iconify.core.types import RasterBuffer


def _png(size: int, color=(0, 120, 255, 255)) -> bytes:
    out = io.BytesIO()
    Image.new("RGBA", (size, size), color).save(out, format="PNG")
    return out.getvalue()


def test_header_and_directory_layout() -> None:
    pngs = [_png(16), _png(32), _png(48)]
    data = encode_ico([(16, pngs[0]), (32, pngs[1]), (48, pngs[2])])

    assert data[:4] == b"\x00\x00\x01\x00"
    assert struct.unpack_from("<H", data, 4)[0] == 3

    offset = 6 + 16 * 3
    for i, (size, png) in enumerate(zip((16, 32, 48), pngs)):
        w, h, colors, reserved, planes, bpp, length, off = struct.unpack_from("<BBBBHHII", data, 6 + 16 * i)
        assert (w, h, colors, reserved, planes, bpp) == (size, size, 0, 0, 1, 32)
        assert length == len(png)
        assert off == offset
        assert data[off : off + length] == png
        offset += length
    assert len(data) == offset


def test_round_trip_keeps_payloads_and_order() -> None:
    buffers = [RasterBuffer(48, _png(48)), RasterBuffer(16, _png(16)), RasterBuffer(32, _png(32))]
    entries = decode_ico(encode_ico(buffers))

    assert [(e.width, e.height) for e in entries] == [(48, 48), (16, 16), (32, 32)]
    assert [e.png for e in entries] == [b.png for b in buffers]


def test_pillow_reads_every_size(make_image) -> None:
    source = make_image()
    data = encode_ico([resample(source, s) for s in (16, 32, 48)])

    ico = Image.open(io.BytesIO(data))
    assert ico.format == "ICO"
    assert sorted(ico.info["sizes"]) == [(16, 16), (32, 32), (48, 48)]


def test_256_uses_zero_byte() -> None:
    data = encode_ico([(256, _png(256))])
    assert data[6] == 0 and data[7] == 0
    assert decode_ico(data)[0].width == 256


def test_rejects_empty_list() -> None:
    with pytest.raises(EncodingError, match="zero images"):
        encode_ico([])


def test_rejects_sizes_above_256() -> None:
    with pytest.raises(EncodingError, match="512px"):
        encode_ico([(512, _png(512))])


def test_rejects_non_png_payload() -> None:
    with pytest.raises(EncodingError, match="not a PNG"):
        encode_ico([(16, b"BM" + b"\x00" * 40)])


def test_rejects_mismatched_declared_size() -> None:
    with pytest.raises(EncodingError, match="expected 32x32"):
        encode_ico([(32, _png(16))])


def test_png_dimensions_reads_ihdr() -> None:
    assert png_dimensions(_png(24)) == (24, 24)


def test_decode_rejects_garbage() -> None:
    with pytest.raises(EncodingError):
        decode_ico(b"\x00\x00\x02\x00\x01\x00")
    with pytest.raises(EncodingError):
        decode_ico(b"\x00\x00\x01\x00\x05\x00")
