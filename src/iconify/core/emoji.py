from __future__ import annotations

import logging
import re
import time
import unicodedata
from dataclasses import dataclass
from enum import Enum

import requests
from PIL import Image, ImageDraw, ImageFont

from iconify.config import settings
from iconify.core.errors import InvalidEmojiError, RasterizationError, ResizeError
from iconify.core.resample import TRANSPARENT, encode_png, resample
from iconify.core.types import RasterBuffer

logger = logging.getLogger(__name__)

GLYPH_SCALE = 0.7  # glyph edge relative to canvas edge for the local render
MAX_SVG_BYTES = 1024 * 1024
# Color bitmap fonts (Noto Color Emoji) only load at their fixed strike.
BITMAP_STRIKE_SIZE = 109

_HEX_RE = re.compile(r"^[0-9A-Fa-f]+$")


class Provenance(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"
    FAILED = "failed"


@dataclass
class RasterizeOutcome:
    provenance: Provenance
    code_point: int
    buffer: RasterBuffer | None = None
    detail: str = ""

    def require(self) -> RasterBuffer:
        if self.buffer is None:
            raise RasterizationError(f"Failed to render emoji: {self.detail}")
        return self.buffer


class GlyphFetchError(Exception):
    pass


def leading_code_point(text: str) -> int:
    stripped = (text or "").strip()
    if not stripped:
        raise InvalidEmojiError("Emoji cannot be empty")
    cp = ord(stripped[0])
    if 0xD800 <= cp <= 0xDFFF or unicodedata.category(stripped[0]) in {"Cc", "Cs"}:
        raise InvalidEmojiError(f"Invalid emoji: no valid code point in {text!r}")
    return cp


def parse_emoji_argument(value: str) -> str:
    """Accept a literal emoji or a code point written as U+1F600, <0001F600> or 1f600."""
    raw = value.strip()
    digits = None
    if raw[:2] in ("U+", "u+"):
        digits = raw[2:]
    elif raw.startswith("<") and raw.endswith(">"):
        digits = raw[1:-1]
    elif _HEX_RE.match(raw) and len(raw) >= 2:
        digits = raw
    if digits is None:
        return raw
    try:
        return chr(int(digits, 16))
    except (ValueError, OverflowError) as exc:
        raise InvalidEmojiError(f"Invalid code point: {value}") from exc


def glyph_url(code_point: int, base: str | None = None) -> str:
    base = (base or settings.emoji_cdn_base).rstrip("/")
    return f"{base}/{code_point:x}.svg"


def fetch_glyph_svg(code_point: int, *, timeout: float) -> str:
    """Single bounded GET of the color SVG glyph. Raises GlyphFetchError on any failure."""
    url = glyph_url(code_point)
    deadline = time.monotonic() + timeout
    try:
        with requests.get(url, timeout=timeout, stream=True) as r:
            if r.status_code != 200:
                raise GlyphFetchError(f"HTTP {r.status_code} from {url}")
            body = bytearray()
            for chunk in r.iter_content(chunk_size=16384):
                body += chunk
                if len(body) > MAX_SVG_BYTES:
                    raise GlyphFetchError(f"glyph larger than {MAX_SVG_BYTES} bytes")
                if time.monotonic() > deadline:
                    raise GlyphFetchError(f"timed out after {timeout}s")
    except requests.RequestException as exc:
        raise GlyphFetchError(f"network error: {exc}") from exc

    text = bytes(body).decode("utf-8", errors="replace")
    if not text.strip():
        raise GlyphFetchError(f"empty response from {url}")
    if "<svg" not in text and "<?xml" not in text:
        raise GlyphFetchError(f"response from {url} is not SVG")
    return text


def svg_to_raster(svg: str, size: int) -> RasterBuffer:
    # cairosvg needs the system cairo library, only load it when a glyph arrives.
    import cairosvg

    png = cairosvg.svg2png(bytestring=svg.encode("utf-8"), output_width=size)
    return resample(png, size)


def _load_font(candidate: str, font_size: int) -> tuple[ImageFont.FreeTypeFont, int] | None:
    for px in (font_size, BITMAP_STRIKE_SIZE):
        try:
            return ImageFont.truetype(candidate, px), px
        except OSError:
            continue
    return None


def _draw_centered(char: str, font, font_size: int) -> Image.Image:
    edge = max(1, round(font_size / GLYPH_SCALE))
    img = Image.new("RGBA", (edge, edge), TRANSPARENT)
    draw = ImageDraw.Draw(img)
    left, top, right, bottom = draw.textbbox((0, 0), char, font=font, embedded_color=True)
    x = (edge - (right - left)) // 2 - left
    y = (edge - (bottom - top)) // 2 - top
    draw.text((x, y), char, font=font, fill=(0, 0, 0, 255), embedded_color=True)
    return img


def render_local(char: str, size: int, fonts: list[str] | None = None) -> RasterBuffer:
    """Draw `char` as text on a transparent canvas, glyph ~70% of the edge."""
    font_size = max(1, round(size * GLYPH_SCALE))
    attempts = [_load_font(c, font_size) for c in (fonts if fonts is not None else settings.emoji_font_candidates)]
    loaded = [a for a in attempts if a is not None]
    loaded.append((ImageFont.load_default(size=font_size), font_size))

    for font, px in loaded:
        img = _draw_centered(char, font, px)
        if img.getchannel("A").getbbox() is None:
            continue
        if img.width != size:
            return resample(img, size)
        return RasterBuffer(size=size, png=encode_png(img))
    raise RasterizationError(f"no local font could draw U+{ord(char):04X}")


def rasterize_emoji(text: str, *, size: int | None = None, timeout: float | None = None) -> RasterizeOutcome:
    """Turn the leading emoji of `text` into a square transparent PNG.

    Stage 1 fetches the color glyph from the CDN once, bounded by `timeout`.
    Stage 2 draws the character locally and only runs after stage 1 failed.
    Raises InvalidEmojiError for unusable input; rendering failures come back
    as a FAILED outcome.
    """
    cp = leading_code_point(text)
    size = size or settings.emoji_canvas_size
    timeout = settings.emoji_fetch_timeout if timeout is None else timeout

    try:
        svg = fetch_glyph_svg(cp, timeout=timeout)
        return RasterizeOutcome(Provenance.REMOTE, cp, svg_to_raster(svg, size), detail=glyph_url(cp))
    except GlyphFetchError as exc:
        remote_detail = str(exc)
    except Exception as exc:
        remote_detail = f"could not rasterize fetched glyph: {exc}"
    logger.warning("emoji U+%04X remote glyph unavailable (%s), rendering locally", cp, remote_detail)

    try:
        buffer = render_local(chr(cp), size)
    except (RasterizationError, ResizeError, OSError, ValueError) as exc:
        detail = f"remote: {remote_detail}; local: {exc}"
        logger.error("emoji U+%04X rasterization failed: %s", cp, detail)
        return RasterizeOutcome(Provenance.FAILED, cp, None, detail=detail)
    return RasterizeOutcome(Provenance.LOCAL, cp, buffer, detail=remote_detail)
