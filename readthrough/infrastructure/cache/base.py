"""
Store Base Class

Shared plumbing for backend stores: namespace handling, key validation and
the generic ``send(operation, data)`` dispatch form.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

from readthrough.core.config.constants import CacheOperation
from readthrough.core.exceptions.cache import CacheKeyError


class BaseStore(ABC):
    """
    Base class for backend stores.

    Subclasses implement get/set/delete/has/clear/keys/health_check; ``send``
    maps the dispatch form onto those methods so both forms behave the same.
    """

    def __init__(self, namespace: str = "caching"):
        self.namespace = namespace

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int = 0) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        ...

    @abstractmethod
    async def has(self, key: str) -> bool:
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...

    @abstractmethod
    def keys(self) -> AsyncIterator[str]:
        ...

    @abstractmethod
    async def health_check(self) -> dict[str, Any]:
        ...

    async def connect(self) -> None:
        """Open resources; no-op for in-process stores."""

    async def disconnect(self) -> None:
        """Release resources; no-op for in-process stores."""

    async def send(self, operation: str | CacheOperation, data: dict[str, Any] | None = None) -> Any:
        """
        Generic dispatch form.

        Args:
            operation: GET, SET, DELETE, HAS or CLEAR
            data: {"key": ..., "value": ..., "ttl": ...}

        Raises:
            ValueError: unknown operation
        """
        data = data or {}
        try:
            op = CacheOperation(str(getattr(operation, "value", operation)).upper())
        except ValueError:
            raise ValueError(f"Unsupported cache operation: {operation}") from None

        if op is CacheOperation.GET:
            return await self.get(data.get("key"))
        if op is CacheOperation.SET:
            return await self.set(data.get("key"), data.get("value"), data.get("ttl") or 0)
        if op is CacheOperation.DELETE:
            return await self.delete(data.get("key"))
        if op is CacheOperation.HAS:
            return await self.has(data.get("key"))
        return await self.clear()

    @staticmethod
    def _validate_key(key: Any) -> str:
        if not isinstance(key, str) or not key:
            raise CacheKeyError("Cache key must be a non-empty string", details={"key": repr(key)})
        return key

    @staticmethod
    def _validate_ttl(ttl: Any) -> int:
        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl < 0:
            raise CacheKeyError("TTL must be a non-negative integer", details={"ttl": repr(ttl)})
        return ttl
