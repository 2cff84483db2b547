from __future__ import annotations

import argparse
from pathlib import Path

from iconify.core.converter import convert_emoji, convert_image


def main() -> None:
    root = Path(__file__).resolve().parents[1]
    parser = argparse.ArgumentParser(description="Regenerate the service's own favicon set")
    parser.add_argument("--emoji", default="🖼", help="Emoji used when assets/favicon.png is missing")
    args = parser.parse_args()

    src_png = root / "assets" / "favicon.png"
    out_dir = root / "src" / "iconify" / "static"

    # Prefer the checked-in artwork; fall back to the emoji glyph.
    if src_png.exists():
        result = convert_image(src_png, "both", out_dir, [16, 32, 48, 64, 128, 256])
    else:
        result = convert_emoji(args.emoji, "both", out_dir, [16, 32, 48, 64, 128, 256])

    if not result.success:
        raise SystemExit(f"favicon generation failed: {result.error}")

    for path in result.artifacts():
        print(f"Wrote: {path}")


if __name__ == "__main__":
    main()
