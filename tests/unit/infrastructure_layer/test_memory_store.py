"""
Unit Tests for MemoryStore

Tests LRU eviction, TTL expiry and the generic dispatch form.
"""

import threading

import pytest

from readthrough.core.config.constants import CacheOperation
from readthrough.core.exceptions import CacheKeyError, CacheSerializationError
from readthrough.infrastructure.cache.memory_store import MemoryStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return MemoryStore(namespace="test", max_size=3, clock=clock)


@pytest.mark.unit
class TestMemoryStore:
    """Test suite for MemoryStore."""

    @pytest.mark.asyncio
    async def test_set_get(self, store):
        await store.set("k", {"a": 1})
        assert await store.get("k") == {"a": 1}
        assert await store.has("k") is True

    @pytest.mark.asyncio
    async def test_missing_key(self, store):
        assert await store.get("nope") is None
        assert await store.has("nope") is False
        assert await store.delete("nope") is False

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.set("k", 1)
        assert await store.delete("k") is True
        assert await store.get("k") is None

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, store, clock):
        """Entries expire once the clock passes their deadline."""
        await store.set("short", 1, ttl=10)
        await store.set("forever", 2)

        clock.advance(9)
        assert await store.has("short") is True

        clock.advance(1)
        assert await store.has("short") is False
        assert await store.get("short") is None
        assert await store.get("forever") == 2

    @pytest.mark.asyncio
    async def test_expired_delete_reports_false(self, store, clock):
        await store.set("k", 1, ttl=1)
        clock.advance(5)
        assert await store.delete("k") is False

    @pytest.mark.asyncio
    async def test_lru_eviction(self, store):
        """Least recently used entry is evicted when full."""
        for key in ("a", "b", "c"):
            await store.set(key, key)

        await store.get("a")
        await store.set("d", "d")

        assert await store.has("b") is False
        assert await store.has("a") is True
        assert store.size() == 3
        assert (await store.health_check())["evictions"] == 1

    @pytest.mark.asyncio
    async def test_overwrite_does_not_grow(self, store):
        await store.set("a", 1)
        await store.set("a", 2)
        assert store.size() == 1
        assert await store.get("a") == 2

    @pytest.mark.asyncio
    async def test_keys_skip_expired(self, store, clock):
        await store.set("a", 1, ttl=1)
        await store.set("b", 2)
        clock.advance(2)

        assert [key async for key in store.keys()] == ["b"]

    @pytest.mark.asyncio
    async def test_clear(self, store):
        await store.set("a", 1)
        await store.clear()
        assert store.size() == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["", None, 42])
    async def test_invalid_key(self, store, key):
        with pytest.raises(CacheKeyError):
            await store.get(key)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ttl", [-1, 1.5, "10"])
    async def test_invalid_ttl(self, store, ttl):
        with pytest.raises(CacheKeyError):
            await store.set("k", 1, ttl=ttl)

    @pytest.mark.asyncio
    async def test_fetched_values_are_independent(self, store):
        await store.set("k", {"tags": ["a"]})

        fetched = await store.get("k")
        fetched["tags"].append("b")

        assert await store.get("k") == {"tags": ["a"]}

    @pytest.mark.asyncio
    async def test_stored_value_detached_from_caller(self, store):
        value = {"title": "Dune"}
        await store.set("k", value)
        value["title"] = "changed"

        assert await store.get("k") == {"title": "Dune"}

    @pytest.mark.asyncio
    async def test_python_types_survive(self, store):
        await store.set("k", ("a", 1))
        assert await store.get("k") == ("a", 1)

    @pytest.mark.asyncio
    async def test_uncopyable_value(self, store):
        with pytest.raises(CacheSerializationError) as exc_info:
            await store.set("k", threading.Lock())

        assert exc_info.value.details["key"] == "k"
        assert exc_info.value.details["namespace"] == "test"
        assert store.size() == 0

    @pytest.mark.asyncio
    async def test_health_check(self, store):
        health = await store.health_check()
        assert health["status"] == "healthy"
        assert health["store"] == "memory"
        assert health["namespace"] == "test"


@pytest.mark.unit
class TestDispatchForm:
    """``send(operation, data)`` behaves like the named methods."""

    @pytest.mark.asyncio
    async def test_dispatch_round(self, store):
        await store.send("SET", {"key": "k", "value": 1, "ttl": 0})

        assert await store.send(CacheOperation.GET, {"key": "k"}) == 1
        assert await store.send("has", {"key": "k"}) is True
        assert await store.send("DELETE", {"key": "k"}) is True
        assert await store.send("GET", {"key": "k"}) is None

    @pytest.mark.asyncio
    async def test_dispatch_clear(self, store):
        await store.set("k", 1)
        await store.send("CLEAR")
        assert store.size() == 0

    @pytest.mark.asyncio
    async def test_unknown_operation(self, store):
        with pytest.raises(ValueError):
            await store.send("INCR", {"key": "k"})
