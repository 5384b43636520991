"""Shared fixtures for the jsonlocale test suite."""

import pytest

from jsonlocale.core.config import configure, reset_config
from jsonlocale.strategies import clear_strategies
from jsonlocale.views import view_generator


@pytest.fixture(autouse=True)
def jsonlocale_config():
    """Fresh process-wide configuration and caches for every test."""
    config = configure(backend="sqlite", available_locales=["en", "fr"], default_locale="en")
    yield config
    reset_config()
    clear_strategies()
    view_generator.clear()
