from __future__ import annotations

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ICONIFY_", env_file=".env", extra="ignore")

    # Emoji glyphs are fetched as `{emoji_cdn_base}/{codepoint}.svg`
    emoji_cdn_base: str = "https://cdn.jsdelivr.net/gh/twitter/twemoji@latest/assets/svg"
    emoji_fetch_timeout: float = 5.0  # seconds, single attempt then local fallback
    emoji_canvas_size: int = 512
    emoji_font_candidates: list[str] = [
        "NotoColorEmoji.ttf",
        "/usr/share/fonts/truetype/noto/NotoColorEmoji.ttf",
        "/System/Library/Fonts/Apple Color Emoji.ttc",
        "seguiemj.ttf",
        "Symbola.ttf",
        "DejaVuSans.ttf",
    ]

    # Scratch directories for the HTTP surface. None = system temp dir.
    scratch_root: Path | None = None
    scratch_prefix: str = "iconify-"

    resize_workers: int = 1  # 1 = resize sizes sequentially
    max_concurrent_conversions: int = 4  # 0 = unlimited
    max_upload_bytes: int = 10 * 1024 * 1024
    ui_zip_keep: int = 20  # newest UI download bundles kept on disk
    ui_cache_ttl: int = 3600  # seconds before gradio deletes cached outputs
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"


settings = Settings()
