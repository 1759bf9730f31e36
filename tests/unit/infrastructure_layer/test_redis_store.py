"""
Unit Tests for RedisStore

Redis is replaced by an AsyncMock client, so no server is needed.
"""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from readthrough.caching.models import CacheEntry
from readthrough.core.exceptions import CacheConnectionError, CacheKeyError, CacheSerializationError
from readthrough.infrastructure.cache.redis_store import RedisStore
from readthrough.infrastructure.cache.serialization import encode_value


def scanning(*keys):
    """Build a scan_iter replacement yielding ``keys``."""

    async def scan_iter(match=None, count=None):
        for key in keys:
            yield key

    return scan_iter


@pytest.fixture
def mock_client():
    client = AsyncMock()
    client.scan_iter = scanning()
    return client


@pytest.fixture
async def store(mock_client, test_settings):
    store = RedisStore(namespace="test", settings=test_settings, client=mock_client)
    await store.connect()
    return store


@pytest.mark.unit
class TestRedisStore:
    """Test suite for RedisStore."""

    @pytest.mark.asyncio
    async def test_connect_pings_injected_client(self, store, mock_client):
        mock_client.ping.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_failure(self, mock_client, test_settings):
        mock_client.ping.side_effect = RedisConnectionError("refused")
        store = RedisStore(namespace="test", settings=test_settings, client=mock_client)

        with pytest.raises(CacheConnectionError) as exc_info:
            await store.connect()

        assert exc_info.value.details["cause"] == "ConnectionError"
        assert exc_info.value.details["host"] == test_settings.redis.REDIS_HOST
        assert isinstance(exc_info.value.__cause__, RedisConnectionError)

    @pytest.mark.asyncio
    async def test_not_connected(self, test_settings):
        store = RedisStore(namespace="test", settings=test_settings)

        with pytest.raises(CacheConnectionError) as exc_info:
            await store.get("k")
        assert exc_info.value.details["suggestion"] == "Call connect() before using the store"

    @pytest.mark.asyncio
    async def test_set_prefixes_and_encodes(self, store, mock_client):
        entry = CacheEntry(value={"ID": 1}, tags=("books",), timestamp=1.0)

        await store.set("k", entry, ttl=60)

        mock_client.set.assert_awaited_once_with("test:k", encode_value(entry), ex=60)

    @pytest.mark.asyncio
    async def test_zero_ttl_means_no_expiry(self, store, mock_client):
        await store.set("k", 1)
        assert mock_client.set.await_args.kwargs["ex"] is None

    @pytest.mark.asyncio
    async def test_get_decodes(self, store, mock_client):
        entry = CacheEntry(value=[1, 2], tags=("a",), timestamp=5.0)
        mock_client.get.return_value = encode_value(entry)

        assert await store.get("k") == entry
        mock_client.get.assert_awaited_once_with("test:k")

    @pytest.mark.asyncio
    async def test_get_missing(self, store, mock_client):
        mock_client.get.return_value = None
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_has_and_delete(self, store, mock_client):
        mock_client.exists.return_value = 1
        mock_client.delete.return_value = 0

        assert await store.has("k") is True
        assert await store.delete("k") is False

    @pytest.mark.asyncio
    async def test_connection_error_mapping(self, store, mock_client):
        mock_client.get.side_effect = RedisConnectionError("gone")
        with pytest.raises(CacheConnectionError) as exc_info:
            await store.get("k")

        assert exc_info.value.details == {
            "cause": "ConnectionError",
            "cause_message": "gone",
            "key": "k",
            "command": "GET",
        }

    @pytest.mark.asyncio
    async def test_command_error_mapping(self, store, mock_client):
        mock_client.exists.side_effect = ResponseError("WRONGTYPE")
        with pytest.raises(CacheKeyError) as exc_info:
            await store.has("k")

        assert exc_info.value.details["cause"] == "ResponseError"
        assert exc_info.value.details["command"] == "EXISTS"

    @pytest.mark.asyncio
    async def test_foreign_value_names_the_key(self, store, mock_client):
        mock_client.get.return_value = b"not json"
        with pytest.raises(CacheSerializationError) as exc_info:
            await store.get("k")

        assert exc_info.value.details["key"] == "k"
        assert exc_info.value.details["namespace"] == "test"
        assert exc_info.value.details["cause"] == "JSONDecodeError"

    @pytest.mark.asyncio
    async def test_keys_strip_namespace(self, store, mock_client):
        mock_client.scan_iter = scanning(b"test:a", "test:b")
        assert [key async for key in store.keys()] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_clear_deletes_scanned_keys(self, store, mock_client):
        mock_client.scan_iter = scanning(b"test:a", b"test:b")
        mock_client.delete.return_value = 2

        await store.clear()

        mock_client.delete.assert_awaited_once_with(b"test:a", b"test:b")

    @pytest.mark.asyncio
    async def test_clear_empty_namespace(self, store, mock_client):
        await store.clear()
        mock_client.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_health_check(self, store, mock_client):
        assert (await store.health_check())["status"] == "healthy"

        mock_client.ping.side_effect = RedisConnectionError("gone")
        health = await store.health_check()
        assert health["status"] == "unhealthy"
        assert health["error"] == "gone"

    @pytest.mark.asyncio
    async def test_disconnect(self, store, mock_client):
        await store.disconnect()

        mock_client.aclose.assert_awaited_once()
        assert (await store.health_check())["status"] == "unhealthy"
