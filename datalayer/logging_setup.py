"""Logging configuration for processes embedding the data layer."""
from __future__ import annotations

import logging

from datalayer.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging from settings. Safe to call more than once."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.effective_log_level, format=LOG_FORMAT)
    logging.getLogger("datalayer").setLevel(settings.effective_log_level)
