"""Environment-based configuration for TransformX."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from TRANSFORMX_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSFORMX_",
        case_sensitive=False,
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 3030
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Input limits
    max_upload_size: int = Field(default=10_000_000, ge=1)
    max_image_pixels: int = Field(default=50_000_000, ge=1)

    # Transform bounds
    max_output_dimension: int = Field(default=10_000, ge=1)
    max_blur_sigma: float = Field(default=100.0, ge=0.0)

    # Encoding
    jpeg_quality: int = Field(default=100, ge=1, le=100)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
