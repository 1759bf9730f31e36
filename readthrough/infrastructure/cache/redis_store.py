"""
Redis Store

Distributed backend store on redis.asyncio with connection pooling.

STAGE-B.2: Redis backend

Key layout:
    {namespace}:{cache key}

Values are encoded with the orjson entry codec (serialization.py). TTLs map
onto ``SET ... EX``; a TTL of 0 stores without expiry. Iteration and
``clear`` use SCAN, never KEYS, so a large keyspace does not block Redis.

Errors:
- connection/timeout problems -> CacheConnectionError
- any other Redis error       -> CacheKeyError
- codec failures              -> CacheSerializationError, tagged with the key
"""

from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager
from typing import Any

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from readthrough.core.config.constants import KEY_SEPARATOR, REDIS_SCAN_COUNT, Stage
from readthrough.core.config.settings import Settings, get_settings
from readthrough.core.exceptions.cache import CacheConnectionError, CacheKeyError, CacheSerializationError
from readthrough.core.logging.logger import get_logger, log_stage
from readthrough.infrastructure.cache.base import BaseStore
from readthrough.infrastructure.cache.serialization import decode_value, encode_value

logger = get_logger(__name__)


class RedisStore(BaseStore):
    """
    Redis-backed store.

    Usage:
        store = RedisStore(namespace="catalog")
        await store.connect()
        await store.set("k", entry, ttl=60)
        await store.disconnect()

    A pre-built client may be injected (``client=``), in which case
    ``connect`` only verifies it with a ping.
    """

    def __init__(
        self,
        namespace: str = "caching",
        settings: Settings | None = None,
        client: redis.Redis | None = None,
    ):
        super().__init__(namespace)
        self._settings = settings or get_settings()
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = client
        self._prefix = f"{namespace}{KEY_SEPARATOR}"

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(self) -> None:
        """
        Create the connection pool and verify it with PING.

        Raises:
            CacheConnectionError: Redis is unreachable
        """
        redis_settings = self._settings.redis
        try:
            if self._client is None:
                self._pool = ConnectionPool(
                    host=redis_settings.REDIS_HOST,
                    port=redis_settings.REDIS_PORT,
                    db=redis_settings.REDIS_DB,
                    password=redis_settings.REDIS_PASSWORD,
                    max_connections=redis_settings.REDIS_MAX_CONNECTIONS,
                    socket_connect_timeout=redis_settings.REDIS_SOCKET_CONNECT_TIMEOUT,
                    socket_timeout=redis_settings.REDIS_SOCKET_TIMEOUT,
                    retry_on_timeout=True,
                    health_check_interval=redis_settings.REDIS_HEALTH_CHECK_INTERVAL,
                )
                self._client = redis.Redis(connection_pool=self._pool)

            await self._client.ping()
        except (RedisConnectionError, RedisTimeoutError) as e:
            log_stage(logger, Stage.STORE, "Failed to connect to Redis", level="error", error=str(e))
            raise CacheConnectionError.from_exception(
                e,
                f"Failed to connect to Redis: {e}",
                host=redis_settings.REDIS_HOST,
                port=redis_settings.REDIS_PORT,
            ) from e

        log_stage(
            logger,
            Stage.STORE,
            "Redis store connected",
            namespace=self.namespace,
            host=redis_settings.REDIS_HOST,
            port=redis_settings.REDIS_PORT,
        )

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
        if self._pool is not None:
            await self._pool.disconnect()
        self._client = None
        self._pool = None
        log_stage(logger, Stage.STORE, "Redis store disconnected", namespace=self.namespace)

    # =========================================================================
    # Store operations
    # =========================================================================

    async def get(self, key: str) -> Any | None:
        key = self._validate_key(key)
        client = self._require_client()
        with self._redis_errors("GET", key):
            data = await client.get(self._prefix + key)
        try:
            return decode_value(data)
        except CacheSerializationError as e:
            raise e.with_context(key=key, namespace=self.namespace)

    async def set(self, key: str, value: Any, ttl: int = 0) -> None:
        key = self._validate_key(key)
        ttl = self._validate_ttl(ttl)
        client = self._require_client()
        try:
            payload = encode_value(value)
        except CacheSerializationError as e:
            raise e.with_context(key=key, namespace=self.namespace)
        with self._redis_errors("SET", key):
            await client.set(self._prefix + key, payload, ex=ttl or None)

    async def delete(self, key: str) -> bool:
        key = self._validate_key(key)
        client = self._require_client()
        with self._redis_errors("DELETE", key):
            return await client.delete(self._prefix + key) > 0

    async def has(self, key: str) -> bool:
        key = self._validate_key(key)
        client = self._require_client()
        with self._redis_errors("EXISTS", key):
            return await client.exists(self._prefix + key) > 0

    async def clear(self) -> None:
        """Delete every key under this store's namespace."""
        client = self._require_client()
        batch: list[Any] = []
        deleted = 0
        with self._redis_errors("CLEAR"):
            async for raw_key in client.scan_iter(match=f"{self._prefix}*", count=REDIS_SCAN_COUNT):
                batch.append(raw_key)
                if len(batch) >= REDIS_SCAN_COUNT:
                    deleted += await client.delete(*batch)
                    batch.clear()
            if batch:
                deleted += await client.delete(*batch)
        log_stage(logger, Stage.STORE, "Redis store cleared", namespace=self.namespace, deleted=deleted)

    async def keys(self) -> AsyncIterator[str]:
        client = self._require_client()
        with self._redis_errors("SCAN"):
            async for raw_key in client.scan_iter(match=f"{self._prefix}*", count=REDIS_SCAN_COUNT):
                key = raw_key.decode() if isinstance(raw_key, bytes) else raw_key
                yield key[len(self._prefix):]

    async def health_check(self) -> dict[str, Any]:
        if self._client is None:
            return {"status": "unhealthy", "store": "redis", "namespace": self.namespace, "error": "not connected"}
        try:
            await self._client.ping()
        except RedisError as e:
            return {"status": "unhealthy", "store": "redis", "namespace": self.namespace, "error": str(e)}
        return {"status": "healthy", "store": "redis", "namespace": self.namespace}

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_client(self) -> redis.Redis:
        if self._client is None:
            raise CacheConnectionError(
                "Redis store is not connected",
                details={"namespace": self.namespace},
            ).with_suggestion("Call connect() before using the store")
        return self._client

    @contextmanager
    def _redis_errors(self, command: str, key: str | None = None) -> Iterator[None]:
        try:
            yield
        except (RedisConnectionError, RedisTimeoutError) as e:
            log_stage(logger, Stage.STORE, f"Redis {command} failed", level="error", key=key, error=str(e))
            raise CacheConnectionError.from_exception(
                e, f"Redis {command} failed: {e}", key=key, command=command
            ) from e
        except RedisError as e:
            log_stage(logger, Stage.STORE, f"Redis {command} failed", level="error", key=key, error=str(e))
            raise CacheKeyError.from_exception(e, f"Redis {command} failed: {e}", key=key, command=command) from e
