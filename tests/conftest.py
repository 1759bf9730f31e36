"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from readthrough.caching.coordinator import ReadThroughCoordinator  # noqa: E402
from readthrough.caching.key_manager import KeyManager  # noqa: E402
from readthrough.caching.models import RequestContext  # noqa: E402
from readthrough.caching.runtime_config import RuntimeConfigurationManager, StatisticsConfig  # noqa: E402
from readthrough.caching.statistics import StatisticsRecorder  # noqa: E402
from readthrough.caching.tag_resolver import TagResolver  # noqa: E402
from readthrough.core.config.settings import Settings  # noqa: E402
from tests.test_fixtures import FakeQueryExecutor, FakeService, RecordingBackend  # noqa: E402

# ============================================================================
# Pytest Configuration
# ============================================================================

# pytest-asyncio runs in auto mode (pyproject.toml), async fixtures and tests
# need no extra decoration.


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_settings():
    """
    Settings isolated from the environment and any .env file.

    Prometheus export is off so tests never touch the global registry.
    """
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        CACHE_NAME="test",
        CACHE_PROMETHEUS_ENABLED=False,
        CACHE_METRICS_ENABLED=True,
        CACHE_KEY_METRICS_ENABLED=True,
    )


@pytest.fixture(scope="session")
def use_real_redis():
    """Check if real Redis should be used for integration tests."""
    return os.getenv("USE_REAL_REDIS", "0").lower() in ("1", "true", "yes")


# ============================================================================
# Caching Fixtures
# ============================================================================


@pytest.fixture
def backend():
    """Recording in-memory backend."""
    return RecordingBackend()


@pytest.fixture
def runtime_config():
    """Runtime configuration with metrics and key metrics enabled."""
    return RuntimeConfigurationManager(
        cache_name="test",
        initial=StatisticsConfig(metrics_enabled=True, key_metrics_enabled=True),
    )


@pytest.fixture
def recorder(runtime_config):
    return StatisticsRecorder("test", runtime_config)


@pytest.fixture
def coordinator(backend, recorder):
    """Coordinator over the recording backend, default concurrency behavior."""
    return ReadThroughCoordinator(
        backend,
        key_manager=KeyManager(),
        tag_resolver=TagResolver(),
        statistics=recorder,
        cache_name="test",
    )


@pytest.fixture
def books_service():
    return FakeService()


@pytest.fixture
def query_executor():
    return FakeQueryExecutor()


@pytest.fixture
def tenant_context():
    return RequestContext(tenant="t1", user="alice", locale="en")
