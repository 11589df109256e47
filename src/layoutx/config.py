"""Environment-based configuration for LayoutX."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from LAYOUTX_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LAYOUTX_",
        case_sensitive=False,
    )

    # Authentication (None = disabled)
    api_key: str | None = None

    # Input limits
    max_source_pixels: int = Field(default=268_435_456, ge=1)
    max_commands: int = Field(default=64, ge=1)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
