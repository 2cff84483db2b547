from __future__ import annotations

import base64
import binascii
import logging
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from fastapi import FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, RedirectResponse, Response
from pydantic import BaseModel

from iconify import __version__
from iconify.config import settings
from iconify.core.converter import convert_emoji, convert_image
from iconify.core.types import DEFAULT_ICO_SIZES, ConversionResult, OutputFormat, parse_ico_sizes, validate_ico_sizes
from iconify.util.scratch import scratch_dir

logger = logging.getLogger(__name__)

INPUT_FILENAME = "input.png"
EMOJI_HINT = "Make sure you're using a valid emoji character (e.g., ⭐, 🚀, 😀), not a code point string"


def _static_path(filename: str) -> str:
    p = os.path.join(os.path.dirname(__file__), "..", "static", filename)
    return os.path.abspath(p)


class ConvertPayload(BaseModel):
    imageData: str | None = None
    emoji: str | None = None
    format: str | None = None
    icoSizes: list[int] | None = None


def decode_image_data(image_data: str) -> bytes:
    """Decode base64 image data, accepting a `data:image/...;base64,` prefix."""
    _, sep, tail = image_data.partition(",")
    encoded = tail if sep else image_data
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("imageData is not valid base64") from e
    if not raw:
        raise ValueError("imageData is empty")
    return raw


def collect_files(result: ConversionResult) -> dict[str, str]:
    files: dict[str, str] = {}
    for path in result.artifacts():
        files[path.name] = base64.b64encode(path.read_bytes()).decode("ascii")
    return files


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def create_app() -> FastAPI:
    app = FastAPI(title="Iconify", version=__version__)

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(request: Request, exc: RequestValidationError):  # noqa: ARG001
        return _error(400, f"Invalid request: {exc.errors()}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    limit = settings.max_concurrent_conversions
    gate = threading.BoundedSemaphore(limit) if limit > 0 else None

    @contextmanager
    def conversion_slot() -> Iterator[None]:
        if gate is None:
            yield
            return
        with gate:
            yield

    def run_conversion(raw: bytes | None, emoji: str | None, fmt: OutputFormat, ico_sizes) -> Response:
        with scratch_dir() as tmp, conversion_slot():
            if emoji:
                result = convert_emoji(emoji, fmt, tmp, ico_sizes)
            else:
                input_path = tmp / INPUT_FILENAME
                input_path.write_bytes(raw or b"")
                result = convert_image(input_path, fmt, tmp, ico_sizes)

            if not result.success:
                return _error(500, result.error or "conversion failed")
            files = collect_files(result)
        return JSONResponse(content={"files": files})

    # Favicon routes must be registered BEFORE mounting Gradio at `/ui`,
    # otherwise Gradio will serve its own favicon for `/ui/favicon.ico`.
    @app.get("/ui/favicon.ico", include_in_schema=False)
    def ui_favicon_ico():
        return RedirectResponse(url="/favicon.ico", status_code=307)

    @app.get("/favicon.ico", include_in_schema=False)
    def favicon_ico():
        ico = _static_path("favicon.ico")
        if os.path.exists(ico):
            return FileResponse(ico, media_type="image/x-icon")
        # Fallback to PNG if ico wasn't generated.
        return RedirectResponse(url="/favicon.png", status_code=307)

    @app.get("/favicon.png", include_in_schema=False)
    def favicon_png():
        png = _static_path("icon-32x32.png")
        if os.path.exists(png):
            return FileResponse(png, media_type="image/png")
        raise HTTPException(status_code=404, detail="favicon not configured")

    # Optional UI mount: ICONIFY_ENABLE_GRADIO_UI=true (default true)
    enable_gradio = os.getenv("ICONIFY_ENABLE_GRADIO_UI", "true").lower() in {"1", "true", "yes", "on"}
    if enable_gradio:
        try:
            import gradio as gr
            from iconify.ui.gradio_ui import create_gradio_ui

            app = gr.mount_gradio_app(app, create_gradio_ui(), path="/ui")
        except Exception as exc:
            logger.warning("Gradio UI mount skipped: %s", exc)

    @app.get("/")
    def index():
        if enable_gradio:
            return RedirectResponse(url="/ui/", status_code=307)
        return {"service": "iconify", "endpoints": ["/api/convert", "/api/convert/upload", "/api/favicon"]}

    @app.get("/health")
    def health() -> dict:
        return {"ok": True, "service": "iconify", "version": __version__}

    @app.post("/api/convert")
    def api_convert(payload: ConvertPayload):
        if not payload.format:
            return _error(400, "Missing required field: format")
        try:
            fmt = OutputFormat.parse(payload.format)
        except ValueError as e:
            return _error(400, str(e))

        raw = None
        if not payload.emoji:
            if not payload.imageData:
                return _error(400, "Missing required field: imageData or emoji")
            try:
                raw = decode_image_data(payload.imageData)
            except ValueError as e:
                return _error(400, f"invalid image: {e}")
            if len(raw) > settings.max_upload_bytes:
                return _error(413, f"image larger than {settings.max_upload_bytes} bytes")

        ico_sizes = DEFAULT_ICO_SIZES
        if fmt.wants_ico:
            try:
                ico_sizes = validate_ico_sizes(payload.icoSizes if payload.icoSizes is not None else DEFAULT_ICO_SIZES)
            except ValueError as e:
                return _error(400, str(e))
        return run_conversion(raw, payload.emoji, fmt, ico_sizes)

    @app.post("/api/convert/upload")
    def api_convert_upload(
        image: UploadFile = File(...),
        output_format: str = Form("both", alias="format"),
        ico_sizes: str = Form("16,32,48"),
    ):
        try:
            fmt = OutputFormat.parse(output_format)
            sizes = parse_ico_sizes(ico_sizes) if fmt.wants_ico else DEFAULT_ICO_SIZES
        except ValueError as e:
            return _error(400, str(e))

        raw = image.file.read(settings.max_upload_bytes + 1)
        if len(raw) > settings.max_upload_bytes:
            return _error(413, f"image larger than {settings.max_upload_bytes} bytes")
        if not raw:
            return _error(400, "invalid image: empty upload")
        return run_conversion(raw, None, fmt, sizes)

    @app.get("/api/favicon")
    def api_favicon(emoji: str | None = Query(None), size: int = Query(32)):
        if not emoji:
            return _error(400, "Missing required query parameter: emoji")
        try:
            ico_sizes = validate_ico_sizes([size])
        except ValueError as e:
            return _error(400, str(e))

        with scratch_dir() as tmp, conversion_slot():
            result = convert_emoji(emoji, OutputFormat.ICO, tmp, ico_sizes)
            if not result.success or result.ico_path is None:
                return _error(500, result.error or "Failed to generate favicon", hint=EMOJI_HINT)
            ico = Path(result.ico_path).read_bytes()

        return Response(
            content=ico,
            media_type="image/x-icon",
            headers={
                "Content-Disposition": 'inline; filename="favicon.ico"',
                "Cache-Control": "public, max-age=31536000, immutable",
            },
        )

    return app


app = create_app()
