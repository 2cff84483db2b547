from __future__ import annotations


class IconifyError(Exception):
    """Base class for every failure the conversion pipeline reports."""


class ValidationError(IconifyError):
    """Input file is missing, unreadable, or not PNG/JPEG."""


class InvalidEmojiError(IconifyError):
    pass


class RasterizationError(IconifyError):
    """Both the CDN glyph and the local text render failed."""


class ResizeError(IconifyError):
    pass


class EncodingError(IconifyError):
    pass
