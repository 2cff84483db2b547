from __future__ import annotations

import io

import numpy as np
import pytest
from PIL import Image

from iconify.core.errors import ResizeError
from iconify.core.resample import contain_size, resample


def _decode(png: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(png))
    assert img.format == "PNG"
    return img.convert("RGBA")


@pytest.mark.parametrize("size", [16, 48, 192])
def test_square_source_fills_canvas(make_image, size: int) -> None:
    buf = resample(make_image(size=(200, 200)), size)
    img = _decode(buf.png)
    assert buf.size == size
    assert img.size == (size, size)
    assert np.asarray(img)[:, :, 3].min() == 255


def test_wide_source_is_letterboxed_with_transparency(make_image) -> None:
    buf = resample(make_image("wide.png", size=(400, 100)), 64)
    arr = np.asarray(_decode(buf.png))

    assert arr.shape == (64, 64, 4)
    # 400x100 -> 64x16, centered vertically at rows 24..40
    assert (arr[:24, :, :] == 0).all()
    assert (arr[40:, :, :] == 0).all()
    assert arr[32, 32, 3] == 255


def test_tall_jpeg_is_pillarboxed(make_image) -> None:
    buf = resample(make_image("tall.jpg", size=(50, 200), fmt="JPEG"), 32)
    arr = np.asarray(_decode(buf.png))

    assert arr.shape == (32, 32, 4)
    assert (arr[:, :12, 3] == 0).all()
    assert (arr[:, 20:, 3] == 0).all()
    assert arr[16, 16, 3] == 255


def test_upscales_small_sources(make_image) -> None:
    buf = resample(make_image("tiny.png", size=(8, 8)), 512)
    assert _decode(buf.png).size == (512, 512)


def test_contain_size_keeps_aspect_and_minimum() -> None:
    assert contain_size(400, 100, 64) == (64, 16)
    assert contain_size(1000, 1, 16) == (16, 1)
    assert contain_size(10, 10, 32) == (32, 32)


def test_corrupt_bytes_raise_resize_error() -> None:
    with pytest.raises(ResizeError):
        resample(b"\x89PNG\r\n\x1a\nbroken", 32)


def test_same_input_gives_identical_output(make_image) -> None:
    path = make_image()
    assert resample(path, 48).png == resample(path, 48).png
