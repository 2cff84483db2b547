from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image

from iconify.core.errors import ValidationError

logger = logging.getLogger(__name__)

# MPO is how Pillow reports multi-picture camera JPEGs.
SUPPORTED_FORMATS = {"PNG": "png", "JPEG": "jpeg", "MPO": "jpeg"}


def validate_input_image(path: str | Path) -> str:
    """Check that `path` is a readable PNG or JPEG file and return its format.

    Runs a header check, then `verify()` and a full decode so truncated files
    fail here instead of inside the resampler. The file is opened read-only.
    """
    path = Path(path)
    if not path.is_file():
        raise ValidationError(f"Input path is not a file: {path}")

    try:
        with Image.open(path) as img:
            fmt = img.format
            if fmt not in SUPPORTED_FORMATS:
                raise ValidationError(f"Unsupported image format: {fmt}. Supported formats: PNG, JPEG")
            img.verify()
        # verify() leaves the image unusable, reopen for the decode check.
        with Image.open(path) as img:
            img.load()
    except ValidationError:
        raise
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        logger.info("validation failed for %s: %s", path, exc)
        raise ValidationError(f"Failed to read or validate image: {path}") from exc

    return SUPPORTED_FORMATS[fmt]
