"""
Application settings using Pydantic.

Settings are loaded from environment variables with .env file support.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CanvasSettings(BaseSettings):
    """Pixel canvas rendering settings."""

    model_config = SettingsConfigDict(env_prefix="RECEIPT_CANVAS_", extra="ignore")

    # Monospace fonts tried in order, Pillow's default font last
    font_paths: list[str] = Field(default=[
        "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
        "/System/Library/Fonts/Menlo.ttc",
        "/System/Library/Fonts/Monaco.ttf",
    ])
    bold_font_paths: list[str] = Field(default=[
        "/usr/share/fonts/truetype/dejavu/DejaVuSansMono-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationMono-Bold.ttf",
    ])

    margin_px: int = Field(default=4, ge=0)
    barcode_dpi: int = 203  # thermal printer standard
    default_qr_module: int = Field(default=4, ge=1)
    default_barcode_height: int = Field(default=60, ge=1)  # dots


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="RECEIPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # Paper geometry
    paper_width: int = Field(default=80, ge=1)  # characters
    device_width_px: int = Field(default=384, ge=8)  # 58mm paper at 203 DPI

    # Token formatting
    currency_symbol: str = "$"
    date_format: str = "%m/%d/%Y"

    # Compiler
    reset_text_style: bool = False

    # ESC/POS output
    encoding: str = "cp437"
    cut_mode: Literal["partial", "full"] = "partial"

    canvas: CanvasSettings = Field(default_factory=CanvasSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
