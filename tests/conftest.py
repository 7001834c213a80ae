"""Pytest configuration and fixtures."""
import pytest

from datalayer.config import get_settings


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Drop cached settings between tests so env changes are picked up."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
