from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Union

PWA_ICON_SIZES: tuple[int, ...] = (16, 32, 48, 64, 128, 192, 512)
DEFAULT_ICO_SIZES: tuple[int, ...] = (16, 32, 48)
# ICO directory entries store each edge in one byte, 0 meaning 256.
MAX_ICO_DIMENSION = 256

ICO_FILENAME = "favicon.ico"
EMOJI_SCRATCH_FILENAME = "emoji-temp.png"


def pwa_filename(size: int) -> str:
    return f"icon-{size}x{size}.png"


class OutputFormat(str, Enum):
    ICO = "ico"
    PWA = "pwa"
    BOTH = "both"

    @classmethod
    def parse(cls, value: "str | OutputFormat") -> "OutputFormat":
        if isinstance(value, OutputFormat):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f'Invalid format "{value}". Must be: ico, pwa, or both') from None

    @property
    def wants_ico(self) -> bool:
        return self in (OutputFormat.ICO, OutputFormat.BOTH)

    @property
    def wants_pwa(self) -> bool:
        return self in (OutputFormat.PWA, OutputFormat.BOTH)


@dataclass(frozen=True)
class EmojiText:
    text: str


Source = Union[Path, EmojiText]


def validate_ico_sizes(sizes: Iterable[int]) -> tuple[int, ...]:
    """Check an ICO size list: non-empty, positive ints, no duplicates, at most 256px. Order is kept."""
    out: list[int] = []
    for size in sizes:
        if isinstance(size, bool) or not isinstance(size, int):
            raise ValueError(f"ICO size must be an integer: {size!r}")
        if size <= 0:
            raise ValueError(f"ICO size must be > 0: {size}")
        if size > MAX_ICO_DIMENSION:
            raise ValueError(f"{size}px cannot be stored in an ICO directory (max {MAX_ICO_DIMENSION})")
        if size in out:
            raise ValueError(f"duplicate ICO size: {size}")
        out.append(size)
    if not out:
        raise ValueError("at least one ICO size is required")
    return tuple(out)


def parse_ico_sizes(raw: str) -> tuple[int, ...]:
    """Parse a comma-separated size list such as ``"16,32,48"``."""
    sizes: list[int] = []
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        try:
            sizes.append(int(token))
        except ValueError as exc:
            raise ValueError(f"Invalid ICO sizes: {raw}") from exc
    return validate_ico_sizes(sizes)


@dataclass(frozen=True)
class ConversionRequest:
    source: Source
    output_format: OutputFormat
    output_dir: Path
    ico_sizes: tuple[int, ...] = DEFAULT_ICO_SIZES

    @property
    def is_emoji(self) -> bool:
        return isinstance(self.source, EmojiText)


@dataclass
class RasterBuffer:
    """Square PNG-encoded bitmap; `size` is both width and height."""

    size: int
    png: bytes


@dataclass
class ConversionResult:
    success: bool
    ico_path: Path | None = None
    pwa_paths: list[Path] | None = None
    error: str | None = None
    emoji_provenance: str | None = None

    @classmethod
    def ok(
        cls,
        *,
        ico_path: Path | None = None,
        pwa_paths: list[Path] | None = None,
        emoji_provenance: str | None = None,
    ) -> "ConversionResult":
        return cls(success=True, ico_path=ico_path, pwa_paths=pwa_paths, emoji_provenance=emoji_provenance)

    @classmethod
    def fail(cls, error: str) -> "ConversionResult":
        return cls(success=False, error=error or "conversion failed")

    def artifacts(self) -> list[Path]:
        paths: list[Path] = []
        if self.ico_path is not None:
            paths.append(self.ico_path)
        paths.extend(self.pwa_paths or [])
        return paths

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error}
        payload: dict[str, Any] = {"success": True}
        if self.ico_path is not None:
            payload["icoPath"] = str(self.ico_path)
        if self.pwa_paths is not None:
            payload["pwaPaths"] = [str(p) for p in self.pwa_paths]
        return payload
