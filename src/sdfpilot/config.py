"""Configuration via pydantic-settings — 12-factor app style."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """sdfpilot configuration — loaded from env vars / .env file."""

    model_config = SettingsConfigDict(env_prefix="SDFPILOT_", env_file=".env", extra="ignore")

    skip_failed: bool = Field(default=False, description="Skip records whose structure fails to decode")
    encoding: str = Field(default="utf-8", description="Text encoding of SD files")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL for summary caching")
    cache_ttl: int = Field(default=300, description="Cache TTL in seconds")
    log_level: str = Field(default="WARNING", description="Log level for the CLI")


settings = Settings()
