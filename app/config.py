"""Application configuration management."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralised application settings derived from environment variables."""

    database_url: str = Field(
        default="sqlite:///./data/fitness_log.db",
        description="SQLAlchemy-compatible database URL.",
    )
    sqlite_busy_timeout_ms: int = Field(
        default=5000,
        ge=0,
        description="How long SQLite connections wait on a locked database.",
    )
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    debug: bool = Field(default=False)

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))
    log_file: str = Field(default="fitness_log.log", min_length=1)

    api_base_url: str = Field(default="http://localhost:8000")
    notification_timeout_seconds: float = Field(default=3.0, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(sorted(valid))}")
        return upper

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Keep the client base URL joinable with absolute API paths."""

        return value.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance so it can be reused across the app."""

    settings = Settings()
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    return settings
