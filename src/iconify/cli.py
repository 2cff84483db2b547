from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from iconify import __version__
from iconify.config import settings
from iconify.core.converter import convert_emoji, convert_image
from iconify.core.emoji import parse_emoji_argument
from iconify.core.errors import InvalidEmojiError
from iconify.core.types import OutputFormat, parse_ico_sizes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="iconify",
        description="Convert PNG/JPEG images or emojis to ICO files and PWA icon sets",
        epilog="Run `iconify serve` to start the HTTP API and browser UI.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("input", help="Input image file path (PNG or JPEG) or emoji")
    parser.add_argument("-o", "--output-dir", default="./output", help="Output directory for generated files")
    parser.add_argument("-f", "--format", default="both", help="Output format: ico, pwa, or both")
    parser.add_argument("-s", "--ico-size", default="16,32,48", help='ICO sizes (comma-separated, e.g., "16,32,48")')
    parser.add_argument(
        "-e",
        "--emoji",
        action="store_true",
        help="Treat input as an emoji (a character, U+1F600, <0001F600> or 1f600)",
    )
    return parser


def build_serve_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="iconify serve", description="Run the Iconify HTTP API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=3000)
    return parser


def serve(argv: list[str]) -> int:
    import uvicorn

    args = build_serve_parser().parse_args(argv)
    uvicorn.run("iconify.api.main:app", host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


def run(argv: list[str]) -> int:
    args = build_parser().parse_args(argv)

    try:
        fmt = OutputFormat.parse(args.format)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        ico_sizes = parse_ico_sizes(args.ico_size)
    except ValueError:
        print(f"Error: Invalid ICO sizes: {args.ico_size}", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir).resolve()

    if args.emoji:
        try:
            emoji = parse_emoji_argument(args.input)
        except InvalidEmojiError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Converting emoji: {emoji}")
    else:
        input_path = Path(args.input).resolve()
        if not input_path.exists():
            print(f"Error: Input file not found: {input_path}", file=sys.stderr)
            return 1
        print(f"Converting {input_path}...")

    print(f"Output directory: {output_dir}")
    print(f"Format: {fmt.value}")
    if fmt.wants_ico:
        print(f"ICO sizes: {', '.join(str(s) for s in ico_sizes)}")

    if args.emoji:
        result = convert_emoji(emoji, fmt, output_dir, ico_sizes)
    else:
        result = convert_image(input_path, fmt, output_dir, ico_sizes)

    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    print("\nConversion completed successfully!")
    if result.ico_path:
        print(f"✓ ICO file: {result.ico_path}")
    if result.pwa_paths:
        print(f"✓ PWA icons generated ({len(result.pwa_paths)} files):")
        for path in result.pwa_paths:
            print(f"  - {path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    if argv and argv[0] == "serve":
        return serve(argv[1:])
    return run(argv)


if __name__ == "__main__":
    raise SystemExit(main())
