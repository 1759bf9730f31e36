"""
Cache-Related Exceptions

All exceptions raised by backend stores (Redis, in-memory).

The read-through coordinator never lets these reach its caller: every backend
call goes through safe_cache_operation, which turns them into CacheErrorRecord
entries.
"""

from readthrough.core.exceptions.base import ReadThroughBaseError


class CacheError(ReadThroughBaseError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """
    Raised when unable to connect to the backend store.

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect host/port configuration
    - Authentication failure
    """
    pass


class CacheKeyError(CacheError):
    """
    Raised when a key operation fails.

    Common causes:
    - Empty or non-string key
    - Operation timeout
    - Memory limit exceeded
    """
    pass


class CacheSerializationError(CacheError):
    """Raised when an entry cannot be encoded for, or decoded from, the store."""
    pass
