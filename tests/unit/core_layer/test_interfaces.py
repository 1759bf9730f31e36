"""
Unit Tests for Core Interfaces

Structural checks: the stores and the test origins satisfy the protocols.
"""

from types import SimpleNamespace

import pytest

from readthrough.core.interfaces import CacheBackend, QueryExecutor, ServiceOrigin, TransportResponse
from readthrough.infrastructure.cache.memory_store import MemoryStore
from readthrough.infrastructure.cache.redis_store import RedisStore
from tests.test_fixtures import FakeQueryExecutor, FakeService


@pytest.mark.unit
class TestProtocols:
    def test_stores_are_backends(self, test_settings):
        assert isinstance(MemoryStore(), CacheBackend)
        assert isinstance(RedisStore(settings=test_settings), CacheBackend)

    def test_origins(self):
        assert isinstance(FakeService(), ServiceOrigin)
        assert isinstance(FakeQueryExecutor(), QueryExecutor)
        assert not isinstance(FakeService(), QueryExecutor)

    def test_transport_response(self):
        assert isinstance(SimpleNamespace(headers={}), TransportResponse)
        assert not isinstance(object(), TransportResponse)
