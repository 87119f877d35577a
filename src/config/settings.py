"""
Application settings (pydantic-settings).

Each group reads its own environment prefix: STORAGE_ for the database,
API_ for the HTTP server. Top-level values such as LOG_LEVEL have no
prefix and may also come from a .env file.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """SQLite database location and pool sizing."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "sales.db"

    pool_size: int = Field(default=5, ge=1, le=64)
    busy_timeout: int = Field(default=30000, ge=0, description="milliseconds")

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class APISettings(BaseSettings):
    """HTTP server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    debug: bool = False
    cors_origins: list[str] = ["*"]

    sales_prefix: str = "/api/sales"

    @field_validator("sales_prefix")
    @classmethod
    def normalize_prefix(cls, v: str) -> str:
        """Mount points start with a slash and never end with one."""
        return "/" + v.strip().strip("/")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Retail Sales API"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: APISettings = Field(default_factory=APISettings)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached instance so the next call re-reads the environment."""
    global _settings
    _settings = None
