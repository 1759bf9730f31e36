"""
Basic Cache Operations

Direct (non read-through) cache API on top of a backend store: set/get with
tags, has, delete, clear, tag-based bulk invalidation, entry metadata and
iteration.

Values are always stored as CacheEntry, so tags and creation time travel with
the value. Every backend call is guarded by ``safe_cache_operation``: with
``throw_on_errors=False`` (default) a failure is logged and the operation
returns its fallback (None/False/0); with ``throw_on_errors=True`` it raises
CacheError.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from readthrough.caching.key_manager import KeyManager
from readthrough.caching.models import CacheEntry
from readthrough.caching.tag_resolver import TagResolver
from readthrough.core.config.constants import Stage
from readthrough.core.exceptions.cache import CacheError
from readthrough.core.interfaces.cache import CacheBackend
from readthrough.core.logging.logger import get_logger, log_stage
from readthrough.core.resilience.safe_operation import safe_cache_operation

logger = get_logger(__name__)


class BasicOperations:
    """
    Tag-aware key/value operations.

    Usage:
        ops = BasicOperations(store)
        await ops.set("books:all", books, ttl=60, tags=["books"])
        await ops.get("books:all")
        await ops.delete_by_tag("books")   # -> 1
    """

    def __init__(
        self,
        backend: CacheBackend,
        key_manager: KeyManager | None = None,
        tag_resolver: TagResolver | None = None,
        throw_on_errors: bool = False,
    ):
        self.backend = backend
        self.key_manager = key_manager or KeyManager()
        self.tag_resolver = tag_resolver or TagResolver()
        self.throw_on_errors = throw_on_errors

    async def set(self, key: Any, value: Any, ttl: int = 0, tags: Any = None) -> None:
        """
        Store a value under a key.

        Args:
            key: String key, or any object (hashed into a key)
            value: Value to store
            ttl: Time-to-live in seconds (0 = no expiry)
            tags: Tag specification resolved against the value
        """
        cache_key = self.resolve_key(key)
        resolved_tags = self.tag_resolver.resolve_tags(tags, value, {"key": cache_key})
        entry = CacheEntry(value=value, tags=tuple(resolved_tags))
        await self._guard(lambda: self.backend.set(cache_key, entry, ttl), "set", {"key": cache_key, "ttl": ttl})

    async def get(self, key: Any) -> Any:
        """Return the stored value, or None when absent."""
        entry = await self._get_entry(self.resolve_key(key))
        return entry.value if isinstance(entry, CacheEntry) else entry

    async def has(self, key: Any) -> bool:
        cache_key = self.resolve_key(key)
        return bool(await self._guard(lambda: self.backend.has(cache_key), "has", {"key": cache_key}, False))

    async def delete(self, key: Any) -> bool:
        cache_key = self.resolve_key(key)
        deleted = await self._guard(lambda: self.backend.delete(cache_key), "delete", {"key": cache_key}, False)
        return bool(deleted)

    async def clear(self) -> None:
        await self._guard(self.backend.clear, "clear")

    async def delete_by_tag(self, tag: str) -> int:
        """
        Delete every entry carrying ``tag``.

        Scans the store's keys and inspects each entry's tag set.

        Returns:
            Number of deleted entries
        """
        deleted = 0
        for key in await self._keys():
            entry = await self._get_entry(key)
            if isinstance(entry, CacheEntry) and tag in entry.tags:
                if await self.delete(key):
                    deleted += 1

        log_stage(logger, Stage.INVALIDATION, "Entries invalidated by tag", tag=tag, deleted=deleted)
        return deleted

    async def metadata(self, key: Any) -> dict[str, Any] | None:
        """Tags and creation timestamp of an entry, or None when absent."""
        cache_key = self.resolve_key(key)
        entry = await self._get_entry(cache_key)
        if not isinstance(entry, CacheEntry):
            return None
        return {"key": cache_key, "tags": list(entry.tags), "timestamp": entry.timestamp}

    async def tags(self, key: Any) -> list[str]:
        meta = await self.metadata(key)
        return meta["tags"] if meta else []

    async def iterate(self) -> AsyncIterator[tuple[str, Any]]:
        """Iterate over ``(key, value)`` pairs of live entries."""
        for key in await self._keys():
            entry = await self._get_entry(key)
            if entry is None:
                continue
            yield key, entry.value if isinstance(entry, CacheEntry) else entry

    def resolve_key(self, key: Any) -> str:
        if isinstance(key, str):
            return key
        return self.key_manager.create_content_hash(key)

    async def _get_entry(self, cache_key: str) -> Any:
        return await self._guard(lambda: self.backend.get(cache_key), "get", {"key": cache_key})

    async def _keys(self) -> list[str]:
        async def collect() -> list[str]:
            return [key async for key in self.backend.keys()]

        return await self._guard(collect, "keys", fallback=[])

    async def _guard(
        self,
        operation: Callable[[], Awaitable[Any]],
        operation_name: str,
        context: dict[str, Any] | None = None,
        fallback: Any = None,
    ) -> Any:
        outcome = await safe_cache_operation(operation, operation_name, context)
        if outcome.success:
            return outcome.result
        if self.throw_on_errors:
            raise CacheError(
                f"Cache {operation_name} failed: {outcome.error.message}",
                details=outcome.error.to_dict(),
            )
        return fallback
