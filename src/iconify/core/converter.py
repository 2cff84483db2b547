from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from iconify.config import settings
from iconify.core.emoji import rasterize_emoji
from iconify.core.errors import IconifyError
from iconify.core.ico import encode_ico
from iconify.core.resample import resample, write_png
from iconify.core.types import (
    DEFAULT_ICO_SIZES,
    EMOJI_SCRATCH_FILENAME,
    ICO_FILENAME,
    PWA_ICON_SIZES,
    ConversionRequest,
    ConversionResult,
    EmojiText,
    OutputFormat,
    RasterBuffer,
    pwa_filename,
    validate_ico_sizes,
)
from iconify.core.validate import validate_input_image

logger = logging.getLogger(__name__)


def _resize_each(source: Path, sizes: Sequence[int], workers: int) -> Iterator[RasterBuffer]:
    """Resample `source` once per size, yielding buffers in the order of `sizes`."""
    if workers <= 1 or len(sizes) <= 1:
        for size in sizes:
            yield resample(source, size)
        return
    with ThreadPoolExecutor(max_workers=min(workers, len(sizes))) as pool:
        yield from pool.map(lambda s: resample(source, s), sizes)


def _prepare_source(request: ConversionRequest) -> tuple[Path, str | None]:
    if isinstance(request.source, EmojiText):
        outcome = rasterize_emoji(request.source.text)
        buffer = outcome.require()
        request.output_dir.mkdir(parents=True, exist_ok=True)
        scratch = write_png(buffer, request.output_dir / EMOJI_SCRATCH_FILENAME)
        logger.info("emoji U+%04X rendered via %s", outcome.code_point, outcome.provenance.value)
        return scratch, outcome.provenance.value

    source = Path(request.source)
    validate_input_image(source)
    return source, None


def _run(request: ConversionRequest) -> ConversionResult:
    fmt = OutputFormat.parse(request.output_format)
    ico_sizes = validate_ico_sizes(request.ico_sizes) if fmt.wants_ico else ()
    workers = max(1, settings.resize_workers)

    source, provenance = _prepare_source(request)
    out_dir = request.output_dir
    out_dir.mkdir(parents=True, exist_ok=True)

    ico_buffers = list(_resize_each(source, ico_sizes, workers)) if fmt.wants_ico else []

    pwa_paths: list[Path] | None = None
    if fmt.wants_pwa:
        pwa_paths = []
        for buffer in _resize_each(source, PWA_ICON_SIZES, workers):
            pwa_paths.append(write_png(buffer, out_dir / pwa_filename(buffer.size)))

    ico_path: Path | None = None
    if fmt.wants_ico:
        ico_path = out_dir / ICO_FILENAME
        ico_path.write_bytes(encode_ico(ico_buffers))

    logger.info(
        "converted %s -> %s (ico=%s, pwa=%d files)",
        source.name,
        out_dir,
        ico_path is not None,
        len(pwa_paths or []),
    )
    return ConversionResult.ok(ico_path=ico_path, pwa_paths=pwa_paths, emoji_provenance=provenance)


def convert(request: ConversionRequest) -> ConversionResult:
    """Run the whole pipeline for one request. Never raises; failures come back as results.

    Files already written when a later step fails are left in place; the
    caller owns `request.output_dir`.
    """
    try:
        return _run(request)
    except (IconifyError, ValueError) as exc:
        logger.warning("conversion failed: %s", exc)
        return ConversionResult.fail(str(exc))
    except OSError as exc:
        logger.warning("conversion I/O failure: %s", exc)
        return ConversionResult.fail(f"I/O error: {exc}")
    except Exception as exc:
        logger.exception("unexpected conversion failure")
        return ConversionResult.fail(f"Unexpected error: {exc}")


def convert_image(
    input_path: str | Path,
    output_format: OutputFormat | str,
    output_dir: str | Path,
    ico_sizes: Iterable[int] | None = None,
) -> ConversionResult:
    try:
        request = ConversionRequest(
            source=Path(input_path),
            output_format=OutputFormat.parse(output_format),
            output_dir=Path(output_dir),
            ico_sizes=tuple(ico_sizes) if ico_sizes is not None else DEFAULT_ICO_SIZES,
        )
    except (TypeError, ValueError) as exc:
        return ConversionResult.fail(str(exc))
    return convert(request)


def convert_emoji(
    emoji: str,
    output_format: OutputFormat | str,
    output_dir: str | Path,
    ico_sizes: Iterable[int] | None = None,
) -> ConversionResult:
    try:
        request = ConversionRequest(
            source=EmojiText(emoji),
            output_format=OutputFormat.parse(output_format),
            output_dir=Path(output_dir),
            ico_sizes=tuple(ico_sizes) if ico_sizes is not None else DEFAULT_ICO_SIZES,
        )
    except (TypeError, ValueError) as exc:
        return ConversionResult.fail(str(exc))
    return convert(request)
