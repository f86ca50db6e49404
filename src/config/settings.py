# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for batch, enrichment, URL and logging settings.
Every field can be set through a ``BATCHVIEW_``-prefixed env var.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from batchview.logging.handlers import parse_size


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BATCHVIEW_",
        extra="ignore",
    )

    # === Batch processing ===
    concurrency: int = 3

    # === Enrichment ===
    generate_thumbnails: bool = True
    pdf_max_thumbnail_pages: int = 10
    pdf_thumbnail_scale: float = 0.3
    pdf_thumbnail_quality: int = 80
    pdf_pitch_deck_keywords: str = "pitch,deck,presentation,slides"
    image_probe_timeout_s: float = 10.0
    icon_base_path: str = "/icons"

    # === Presentation ===
    lightbox_page_size: int = 20

    # === Remote file endpoint ===
    remote_base_url: str = "http://localhost:8787"
    remote_mirror_urls: bool = False
    remote_thumbnail_size: int = 300
    download_timeout_s: float = 30.0

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("remote_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:  # noqa: N805
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate ranges and cross-field rules."""
        errors: list[str] = []

        if self.concurrency < 1:
            errors.append("CONCURRENCY must be >= 1")
        if self.pdf_max_thumbnail_pages < 0:
            errors.append("PDF_MAX_THUMBNAIL_PAGES must be >= 0")
        if self.pdf_thumbnail_scale <= 0:
            errors.append("PDF_THUMBNAIL_SCALE must be > 0")
        if not 1 <= self.pdf_thumbnail_quality <= 100:
            errors.append("PDF_THUMBNAIL_QUALITY must be within 1-100")
        if self.image_probe_timeout_s <= 0:
            errors.append("IMAGE_PROBE_TIMEOUT_S must be > 0")
        if self.lightbox_page_size < 1:
            errors.append("LIGHTBOX_PAGE_SIZE must be >= 1")
        if self.remote_thumbnail_size < 1:
            errors.append("REMOTE_THUMBNAIL_SIZE must be >= 1")
        if self.download_timeout_s <= 0:
            errors.append("DOWNLOAD_TIMEOUT_S must be > 0")
        try:
            parse_size(self.log_rotation)
        except ValueError:
            errors.append(f"LOG_ROTATION {self.log_rotation!r} is not a size label")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def pitch_deck_keywords_list(self) -> list[str]:
        """Parse comma-separated pitch deck keywords."""
        return [
            k.strip().lower() for k in self.pdf_pitch_deck_keywords.split(",") if k.strip()
        ]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-batch config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
