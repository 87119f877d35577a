"""Settings and structured logging for the sales API."""

from src.config.logging import configure_logging, get_logger
from src.config.settings import (
    APISettings,
    Settings,
    StorageSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "APISettings",
    "Settings",
    "StorageSettings",
    "configure_logging",
    "get_logger",
    "get_settings",
    "reset_settings",
]
