"""
Pytest configuration & shared fixtures.
"""

from collections.abc import Iterator

import pytest

from objmap import MapRegistry
from objmap.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep OBJMAP_* variables from the environment out of every test."""
    for name in list(Settings.model_fields):
        monkeypatch.delenv(f"OBJMAP_{name.upper()}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def registry(settings: Settings) -> MapRegistry:
    """Provide an empty registry with default settings."""
    return MapRegistry(settings=settings)
