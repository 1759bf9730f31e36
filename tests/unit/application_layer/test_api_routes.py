"""
Unit Tests for API Routes

Tests the cache admin endpoints with TestClient against an in-memory store.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from readthrough.api.app import create_app
from readthrough.infrastructure.cache.memory_store import MemoryStore
from readthrough.service import CachingService
from tests.test_fixtures import CacheTestFactory, FakeService, RequestFactory


@pytest.fixture
def caching_service(test_settings):
    return CachingService(settings=test_settings, store=MemoryStore("test"))


@pytest.fixture
def client(caching_service):
    """Create test client with lifespan handling."""
    with TestClient(create_app(caching_service)) as client:
        yield client


@pytest.mark.unit
class TestStatsRoutes:
    """Test suite for statistics routes."""

    def test_stats_empty(self, client):
        response = client.get("/cache/stats")

        assert response.status_code == 200
        data = response.json()
        assert data["cacheName"] == "test"
        assert data["requests"] == 0
        assert data["metricsEnabled"] is True
        assert "hitLatency" in data

    def test_stats_after_traffic(self, client, caching_service):
        """Test hits and misses show up in camelCase."""
        books = FakeService()
        asyncio.run(caching_service.send(books, RequestFactory.books_request()))
        asyncio.run(caching_service.send(books, RequestFactory.books_request()))

        data = client.get("/cache/stats").json()

        assert data["hits"] == 1
        assert data["misses"] == 1
        assert data["hitRatio"] == 0.5
        assert data["trackedKeys"] == 1

    def test_key_stats(self, client, caching_service):
        envelope = asyncio.run(caching_service.rt.send(FakeService(), RequestFactory.books_request()))

        data = client.get("/cache/stats/keys").json()

        assert data["keys"][envelope.cache_key]["misses"] == 1
        assert data["keys"][envelope.cache_key]["lastOperation"]["operation"] == "SEND"


@pytest.mark.unit
class TestConfigRoutes:
    def test_get_config(self, client):
        assert client.get("/cache/config").json() == {
            "cacheName": "test",
            "metricsEnabled": True,
            "keyMetricsEnabled": True,
        }

    def test_partial_update(self, client, caching_service):
        response = client.put("/cache/config", json={"metricsEnabled": False})

        assert response.status_code == 200
        assert response.json()["metricsEnabled"] is False
        assert response.json()["keyMetricsEnabled"] is True
        assert caching_service.runtime_config.get().metrics_enabled is False

    def test_invalid_update(self, client):
        response = client.put("/cache/config", json={"metricsEnabled": "sometimes"})
        assert response.status_code == 422


@pytest.mark.unit
class TestEntryRoutes:
    def test_metadata(self, client, caching_service):
        asyncio.run(caching_service.set("books:all", [1], tags=["books"]))

        response = client.get("/cache/keys/books:all/metadata")

        assert response.status_code == 200
        assert response.json()["tags"] == ["books"]
        assert response.json()["key"] == "books:all"

    def test_metadata_missing(self, client):
        assert client.get("/cache/keys/nope/metadata").status_code == 404

    def test_delete(self, client, caching_service):
        asyncio.run(caching_service.set("books:all", [1]))

        assert client.delete("/cache/keys/books:all").json() == {"key": "books:all", "deleted": True}
        assert client.delete("/cache/keys/books:all").json()["deleted"] is False

    def test_invalidate(self, client, caching_service):
        asyncio.run(caching_service.set("a", 1, tags=["books"]))
        asyncio.run(caching_service.set("b", 2, tags=["books"]))

        response = client.post("/cache/invalidate", json={"tag": "books"})

        assert response.json() == {"tag": "books", "deleted": 2}

    def test_invalidate_requires_tag(self, client):
        assert client.post("/cache/invalidate", json={"tag": ""}).status_code == 422

    def test_clear(self, client, caching_service):
        asyncio.run(caching_service.set("a", 1))

        assert client.post("/cache/clear").json() == {"cleared": True}
        assert asyncio.run(caching_service.has("a")) is False


@pytest.mark.unit
class TestOperationalRoutes:
    def test_metrics(self, client):
        response = client.get("/cache/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")

    def test_health(self, client):
        response = client.get("/cache/health")

        assert response.status_code == 200
        assert response.json()["store"] == "memory"

    def test_root(self, client):
        assert client.get("/").json()["cache"] == "/cache/stats"

    def test_correlation_id_echoed(self, client):
        response = client.get("/cache/config", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_correlation_id_generated(self, client):
        assert client.get("/cache/config").headers["X-Correlation-ID"]


@pytest.mark.unit
def test_cache_errors_map_to_json(test_settings):
    """Errors raised by the basic API become structured JSON responses."""
    settings = test_settings.model_copy(update={"CACHE_THROW_ON_ERRORS": True})
    service = CachingService(settings=settings, store=CacheTestFactory.failing_backend("get"))

    with TestClient(create_app(service)) as client:
        response = client.get("/cache/keys/k/metadata")

    assert response.status_code == 500
    assert response.json()["error_type"] == "CacheError"
    assert "backend unavailable" in response.json()["message"]
