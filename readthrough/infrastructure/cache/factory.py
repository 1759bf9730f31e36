"""
Store Factory

Builds the configured backend store (CACHE_STORE=memory|redis).
"""

from readthrough.core.config.constants import StoreType
from readthrough.core.config.settings import Settings, get_settings
from readthrough.core.exceptions.base import ConfigurationError
from readthrough.infrastructure.cache.base import BaseStore
from readthrough.infrastructure.cache.memory_store import MemoryStore
from readthrough.infrastructure.cache.redis_store import RedisStore


def create_store(settings: Settings | None = None) -> BaseStore:
    """
    Create the backend store described by settings.

    The namespace defaults to the cache name, so two caches sharing one Redis
    never see each other's keys.

    Raises:
        ConfigurationError: unknown store type
    """
    settings = settings or get_settings()
    cache_settings = settings.cache
    namespace = cache_settings.CACHE_NAMESPACE or cache_settings.CACHE_NAME

    try:
        store_type = StoreType(cache_settings.CACHE_STORE)
    except ValueError:
        raise ConfigurationError(
            f"Unknown cache store: {cache_settings.CACHE_STORE}",
            details={"supported": [t.value for t in StoreType]},
        ) from None

    if store_type is StoreType.REDIS:
        return RedisStore(namespace=namespace, settings=settings)
    return MemoryStore(namespace=namespace, max_size=cache_settings.CACHE_MEMORY_MAX_SIZE)
