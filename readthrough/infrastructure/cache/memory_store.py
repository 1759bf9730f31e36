"""
In-Memory Store

In-process LRU store with per-entry TTL.

STAGE-B.1: In-memory backend

Implementation Details:
- OrderedDict for O(1) access and LRU ordering
- asyncio.Lock serializes mutations
- Oldest entries are evicted when the store is full
- Expiry uses time.monotonic(), so wall-clock jumps never expire entries
- Values are kept as Python objects, deep-copied on the way in and out so
  callers never share mutable state with the store or with each other

This is a per-process store, not shared across workers. Use RedisStore for a
shared cache.
"""

import asyncio
import copy
import time
from collections import OrderedDict
from collections.abc import AsyncIterator
from typing import Any

from readthrough.core.config.constants import MEMORY_STORE_MAX_SIZE, Stage
from readthrough.core.exceptions.cache import CacheSerializationError
from readthrough.core.logging.logger import get_logger, log_stage
from readthrough.infrastructure.cache.base import BaseStore

logger = get_logger(__name__)


class MemoryStore(BaseStore):
    """
    LRU store with TTL.

    Usage:
        store = MemoryStore(namespace="catalog", max_size=1000)
        await store.set("k", entry, ttl=60)
        await store.get("k")
    """

    def __init__(self, namespace: str = "caching", max_size: int = MEMORY_STORE_MAX_SIZE, clock=time.monotonic):
        super().__init__(namespace)
        self._max_size = max_size
        self._clock = clock
        self._data: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._lock = asyncio.Lock()
        self._evictions = 0

    async def get(self, key: str) -> Any | None:
        """
        Get a value; expired entries are dropped on access.

        LRU Update: a read marks the entry as most recently used.
        """
        key = self._validate_key(key)
        async with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            value, expires_at = item
            if self._expired(expires_at):
                del self._data[key]
                return None
            self._data.move_to_end(key)
        return self._copy(key, value)

    async def set(self, key: str, value: Any, ttl: int = 0) -> None:
        """Store a value; ttl 0 means no expiry."""
        key = self._validate_key(key)
        ttl = self._validate_ttl(ttl)
        expires_at = self._clock() + ttl if ttl > 0 else None
        value = self._copy(key, value)

        async with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
            self._data[key] = (value, expires_at)

            while len(self._data) > self._max_size:
                evicted, _ = self._data.popitem(last=False)
                self._evictions += 1
                log_stage(logger, Stage.STORE, "LRU eviction", level="debug", namespace=self.namespace, key=evicted)

    async def delete(self, key: str) -> bool:
        key = self._validate_key(key)
        async with self._lock:
            item = self._data.pop(key, None)
            return item is not None and not self._expired(item[1])

    async def has(self, key: str) -> bool:
        key = self._validate_key(key)
        async with self._lock:
            item = self._data.get(key)
            if item is None:
                return False
            if self._expired(item[1]):
                del self._data[key]
                return False
            return True

    async def clear(self) -> None:
        async with self._lock:
            self._data.clear()
        log_stage(logger, Stage.STORE, "Memory store cleared", namespace=self.namespace)

    async def keys(self) -> AsyncIterator[str]:
        """Iterate over live keys (snapshot taken at the start)."""
        async with self._lock:
            snapshot = [key for key, (_, expires_at) in self._data.items() if not self._expired(expires_at)]
        for key in snapshot:
            yield key

    async def health_check(self) -> dict[str, Any]:
        return {
            "status": "healthy",
            "store": "memory",
            "namespace": self.namespace,
            "size": len(self._data),
            "max_size": self._max_size,
            "evictions": self._evictions,
        }

    def size(self) -> int:
        return len(self._data)

    def _copy(self, key: str, value: Any) -> Any:
        try:
            return copy.deepcopy(value)
        except (TypeError, copy.Error) as e:
            raise CacheSerializationError.from_exception(
                e, "Cache value cannot be copied", key=key, namespace=self.namespace
            ) from e

    def _expired(self, expires_at: float | None) -> bool:
        return expires_at is not None and self._clock() >= expires_at
