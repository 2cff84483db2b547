from __future__ import annotations

import os
from pathlib import Path

import pytest
from PIL import Image

# Keep the API tests off the gradio mount.
os.environ.setdefault("ICONIFY_ENABLE_GRADIO_UI", "false")

from iconify.core import emoji as emoji_mod  # noqa: E402


@pytest.fixture(autouse=True)
def offline_cdn(monkeypatch):
    """No test talks to the real emoji CDN; tests that need a glyph patch this again."""

    def _offline(code_point: int, *, timeout: float) -> str:  # noqa: ARG001
        raise emoji_mod.GlyphFetchError("network disabled in tests")

    monkeypatch.setattr(emoji_mod, "fetch_glyph_svg", _offline)


@pytest.fixture
def make_image(tmp_path):
    def _make(name: str = "logo.png", size: tuple[int, int] = (200, 200), fmt: str = "PNG", color=(200, 30, 30, 255)) -> Path:
        path = tmp_path / name
        mode = "RGBA" if fmt == "PNG" else "RGB"
        img = Image.new(mode, size, color if mode == "RGBA" else color[:3])
        img.save(path, format=fmt)
        return path

    return _make
