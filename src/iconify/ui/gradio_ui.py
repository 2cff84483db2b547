from __future__ import annotations

import io
import logging
import tempfile
import zipfile
from pathlib import Path
from typing import Any
from uuid import uuid4

import gradio as gr
import numpy as np
from PIL import Image

from iconify.config import settings
from iconify.core.converter import convert_emoji, convert_image
from iconify.core.ico import decode_ico
from iconify.core.types import ConversionResult, OutputFormat, parse_ico_sizes
from iconify.util.scratch import scratch_dir

logger = logging.getLogger(__name__)

ZIP_DIR = Path(tempfile.gettempdir()) / "iconify-ui"


def _image_from_array(image: Any) -> Image.Image | None:
    if image is None:
        return None
    arr = np.asarray(image)
    if arr.ndim == 2:
        return Image.fromarray(arr.astype(np.uint8))
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        return None
    return Image.fromarray(arr.astype(np.uint8))


def build_zip(result: ConversionResult) -> bytes:
    """Bundle every generated artifact into one ZIP archive."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path in result.artifacts():
            zf.write(path, arcname=path.name)
    return buf.getvalue()


def prune_zips(directory: Path, keep: int, current: Path | None = None) -> None:
    """Delete all but the newest `keep` bundles in `directory`, never `current`."""
    bundles = sorted(directory.glob("iconify-*.zip"), key=lambda p: p.stat().st_mtime, reverse=True)
    kept = 1 if current is not None else 0
    for path in bundles:
        if path == current:
            continue
        if kept < keep:
            kept += 1
            continue
        path.unlink(missing_ok=True)


def _previews(result: ConversionResult) -> list[tuple[Image.Image, str]]:
    previews: list[tuple[Image.Image, str]] = []
    if result.ico_path is not None:
        for entry in decode_ico(result.ico_path.read_bytes()):
            previews.append((Image.open(io.BytesIO(entry.png)).copy(), f"favicon.ico {entry.width}x{entry.height}"))
    for path in result.pwa_paths or []:
        with Image.open(path) as img:
            previews.append((img.copy(), path.name))
    return previews


def run_ui_conversion(image: Any, emoji: str, fmt: str, ico_sizes: str):
    """Gradio callback: returns (status markdown, gallery items, zip path)."""
    try:
        output_format = OutputFormat.parse(fmt)
        sizes = parse_ico_sizes(ico_sizes or "16,32,48")
    except ValueError as exc:
        return f"**Error:** {exc}", [], None

    emoji = (emoji or "").strip()
    source = _image_from_array(image)
    if not emoji and source is None:
        return "Upload an image or type an emoji first.", [], None

    with scratch_dir() as tmp:
        if emoji:
            result = convert_emoji(emoji, output_format, tmp, sizes)
        else:
            input_path = tmp / "input.png"
            source.save(input_path, format="PNG")
            result = convert_image(input_path, output_format, tmp, sizes)

        if not result.success:
            logger.info("ui conversion failed: %s", result.error)
            return f"**Error:** {result.error}", [], None

        ZIP_DIR.mkdir(parents=True, exist_ok=True)
        zip_path = ZIP_DIR / f"iconify-{uuid4().hex[:10]}.zip"
        zip_path.write_bytes(build_zip(result))
        prune_zips(ZIP_DIR, max(1, settings.ui_zip_keep), current=zip_path)
        previews = _previews(result)

    names = ", ".join(label for _, label in previews)
    status = f"Generated {len(result.artifacts())} file(s): {names}"
    if result.emoji_provenance == "local":
        status += "\n\nEmoji CDN was unreachable; rendered with a local font."
    return status, previews, str(zip_path)


def create_gradio_ui() -> gr.Blocks:
    css = """
    .app-shell {
      max-width: 980px;
      margin: 0 auto;
      border-radius: 18px;
      padding: 20px;
    }
    .hero-title { font-size: 32px; font-weight: 800; margin-bottom: 4px; }
    .hero-sub { margin-bottom: 14px; font-size: 15px; }
    """

    ttl = settings.ui_cache_ttl
    with gr.Blocks(
        title="Iconify",
        css=css,
        theme=gr.themes.Soft(primary_hue="amber"),
        delete_cache=(ttl, ttl),
    ) as demo:
        with gr.Column(elem_classes=["app-shell"]):
            gr.HTML('<div class="hero-title">Iconify</div>')
            gr.HTML(
                '<div class="hero-sub">Turn a PNG/JPEG or a single emoji into favicon.ico and a PWA icon set.</div>'
            )

            with gr.Row():
                image_input = gr.Image(type="numpy", image_mode="RGBA", label="Source image (PNG/JPEG)")
                with gr.Column():
                    emoji_input = gr.Textbox(label="...or an emoji", placeholder="⭐")
                    format_input = gr.Radio(choices=[f.value for f in OutputFormat], value="both", label="Output")
                    sizes_input = gr.Textbox(value="16,32,48", label="ICO sizes")
                    convert_btn = gr.Button("Convert", variant="primary")

            status_md = gr.Markdown("Results will appear here.")
            gallery = gr.Gallery(label="Generated icons", columns=8, height="auto")
            zip_file = gr.File(label="Download ZIP")

            convert_btn.click(
                fn=run_ui_conversion,
                inputs=[image_input, emoji_input, format_input, sizes_input],
                outputs=[status_md, gallery, zip_file],
            )

    return demo
