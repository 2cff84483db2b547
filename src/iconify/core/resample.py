from __future__ import annotations

import io
from pathlib import Path
from typing import Union

from PIL import Image

from iconify.core.errors import ResizeError
from iconify.core.types import RasterBuffer

TRANSPARENT = (0, 0, 0, 0)

ImageSource = Union[str, Path, bytes, Image.Image]


def _open_rgba(source: ImageSource) -> Image.Image:
    if isinstance(source, Image.Image):
        return source.convert("RGBA")
    if isinstance(source, (bytes, bytearray)):
        img = Image.open(io.BytesIO(source))
    else:
        img = Image.open(source)
    with img:
        img.load()
        return img.convert("RGBA")


def contain_size(width: int, height: int, box: int) -> tuple[int, int]:
    """Largest (w, h) with the source aspect ratio that fits inside `box` x `box`."""
    scale = min(box / width, box / height)
    return max(1, min(box, round(width * scale))), max(1, min(box, round(height * scale)))


def encode_png(img: Image.Image) -> bytes:
    out = io.BytesIO()
    img.save(out, format="PNG", optimize=True)
    return out.getvalue()


def resample(source: ImageSource, size: int) -> RasterBuffer:
    """Contain-fit `source` into a transparent `size` x `size` PNG.

    The source is decoded again for every call so each size comes straight
    from the original pixels.
    """
    if size <= 0:
        raise ResizeError(f"target size must be > 0: {size}")
    try:
        img = _open_rgba(source)
        w, h = contain_size(img.width, img.height, size)
        scaled = img.resize((w, h), Image.Resampling.LANCZOS)
        canvas = Image.new("RGBA", (size, size), TRANSPARENT)
        canvas.paste(scaled, ((size - w) // 2, (size - h) // 2))
        png = encode_png(canvas)
    except ResizeError:
        raise
    except (OSError, SyntaxError, ValueError, ZeroDivisionError, Image.DecompressionBombError) as exc:
        raise ResizeError(f"Failed to resize image to {size}x{size}: {exc}") from exc
    return RasterBuffer(size=size, png=png)


def write_png(buffer: RasterBuffer, path: Path) -> Path:
    path.write_bytes(buffer.png)
    return path
