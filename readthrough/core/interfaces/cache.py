"""
Cache Backend Protocol

This module defines the protocol every backend store satisfies, enabling
dependency injection and testability.

Architectural Decision: Protocol-based abstraction
- Multiple backend implementations (Redis, in-memory)
- Testing with fake or mock implementations
- The coordinator treats each call as one opaque atomic operation
"""

from collections.abc import AsyncIterator
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheBackend(Protocol):
    """
    Protocol defining the interface for backend stores.

    Implementations:
    - MemoryStore: in-process LRU store with TTL
    - RedisStore: distributed Redis-backed store

    Values handed to ``set`` are arbitrary serializable payloads (in practice
    CacheEntry instances); the store owns their encoding.
    """

    async def get(self, key: str) -> Any | None:
        """
        Get value from the store.

        Args:
            key: Cache key

        Returns:
            Stored value or None if absent/expired

        Raises:
            CacheError: If the operation fails
        """
        ...

    async def set(self, key: str, value: Any, ttl: int = 0) -> None:
        """
        Store a value.

        Args:
            key: Cache key
            value: Value to store
            ttl: Time-to-live in seconds (0 = no expiry)

        Raises:
            CacheError: If the operation fails
        """
        ...

    async def delete(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if a value was removed
        """
        ...

    async def has(self, key: str) -> bool:
        """Check whether a non-expired value exists for the key."""
        ...

    async def clear(self) -> None:
        """Remove every key of this store's namespace."""
        ...

    def keys(self) -> AsyncIterator[str]:
        """Iterate over the keys of this store's namespace."""
        ...

    async def send(self, operation: str, data: dict[str, Any] | None = None) -> Any:
        """
        Generic dispatch form.

        ``send("GET", {"key": k})`` behaves exactly like ``get(k)``;
        ``send("SET", {"key": k, "value": v, "ttl": t})`` like ``set(k, v, t)``.
        """
        ...

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check.

        Returns:
            Dict with health status and details
        """
        ...
