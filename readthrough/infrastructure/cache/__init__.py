"""
Cache Infrastructure

Backend stores and the direct cache API:

- **memory_store.py**: in-process LRU store with TTL
- **redis_store.py**: Redis store (redis.asyncio, SCAN-based iteration)
- **serialization.py**: orjson entry codec
- **factory.py**: store selection from settings
- **basic_operations.py**: set/get/has/delete/clear/delete_by_tag/metadata
"""

from readthrough.infrastructure.cache.base import BaseStore
from readthrough.infrastructure.cache.basic_operations import BasicOperations
from readthrough.infrastructure.cache.factory import create_store
from readthrough.infrastructure.cache.memory_store import MemoryStore
from readthrough.infrastructure.cache.redis_store import RedisStore

__all__ = [
    "BaseStore",
    "BasicOperations",
    "create_store",
    "MemoryStore",
    "RedisStore",
]
