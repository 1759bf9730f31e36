"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .cache_factory import (
    CacheTestFactory,
    FailingBackend,
    FakeQueryExecutor,
    FakeService,
    LyingBackend,
    RecordingBackend,
)
from .request_factory import RequestFactory

__all__ = [
    "CacheTestFactory",
    "FailingBackend",
    "FakeQueryExecutor",
    "FakeService",
    "LyingBackend",
    "RecordingBackend",
    "RequestFactory",
]
