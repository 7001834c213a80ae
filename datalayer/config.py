"""
Data layer configuration.

Environment-based settings (``DATALAYER_*``) for the embedding process.
Per-manager wiring (which log to attach to) is passed to
``DataLayerManager`` directly, not read from here.
"""
import logging
from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    app_name: str = "Client Data Layer"
    debug: bool = False

    # Logging. None resolves to DEBUG when debug is on, INFO otherwise.
    log_level: Optional[str] = None

    # Report malformed items at ERROR (False demotes them to DEBUG).
    # Malformed items are dropped either way.
    log_invalid_items: bool = True

    model_config = SettingsConfigDict(
        env_prefix="DATALAYER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level

    @property
    def effective_log_level(self) -> int:
        """Numeric logging level to configure."""
        if self.log_level is not None:
            return logging.getLevelName(self.log_level)
        return logging.DEBUG if self.debug else logging.INFO

    @property
    def invalid_item_log_level(self) -> int:
        return logging.ERROR if self.log_invalid_items else logging.DEBUG


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
