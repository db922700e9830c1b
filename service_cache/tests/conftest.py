"""
Shared fixtures for image cache service tests.
"""

import pytest

from shared.config import get_config
from shared.metrics import MetricsCollector
from service_cache.app.keys import CacheKey
from service_cache.app.storage import FileKeyStore



@pytest.fixture
def cache_dir(tmp_path):
    """Existing, empty cache directory."""
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def store(cache_dir):
    """File store rooted in the temporary cache directory."""
    return FileKeyStore(cache_dir)


@pytest.fixture
def metrics():
    """Metrics collector with a private registry."""
    return MetricsCollector("cache")


@pytest.fixture
def key():
    """A valid cache key."""
    return CacheKey.parse("200")


@pytest.fixture
def make_config(cache_dir):
    """Factory for service configuration pointing at the temporary cache."""

    def _make(**overrides):
        return get_config("cache", "127.0.0.1", 8080, cache_dir, **overrides)

    return _make


@pytest.fixture
def image_a():
    """Binary payload standing in for a JPEG."""
    return b"\xff\xd8\xff\xe0binary-A\x00\x01\x02\xff\xd9"


@pytest.fixture
def image_b():
    """A second, different binary payload."""
    return b"\xff\xd8\xff\xe0binary-B\x10\x11\x12\xff\xd9"
