"""
Caching Service

Public facade composing every part of the read-through cache:

    CachingService
        ├── store (MemoryStore | RedisStore, from settings)
        ├── BasicOperations   set/get/has/delete/clear/delete_by_tag/...
        ├── ReadThroughCoordinator (service.rt) send/run/wrap/exec
        ├── CacheableRegistry      options declared per function/entity
        ├── RuntimeConfigurationManager + StatisticsRecorder
        └── MetricsCollector (Prometheus, optional)

Usage:
    service = await init_caching_service()

    await service.set("books:all", books, ttl=60, tags=["books"])
    envelope = await service.rt.send(books_service, request, {"ttl": 60})
    books = await service.send(books_service, request)   # bare result

    await close_caching_service()
"""

import functools
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from typing import Any

from readthrough.caching.coordinator import ContextSource, ReadThroughCoordinator
from readthrough.caching.descriptors import ServiceCallRequest, StructuredQueryRequest
from readthrough.caching.key_manager import KeyManager
from readthrough.caching.models import CacheOptions
from readthrough.caching.registry import CacheableRegistry
from readthrough.caching.runtime_config import RuntimeConfigurationManager, StatisticsConfig
from readthrough.caching.statistics import StatisticsRecorder
from readthrough.caching.tag_resolver import TagResolver
from readthrough.core.config.constants import Stage
from readthrough.core.config.settings import Settings, get_settings
from readthrough.core.interfaces.cache import CacheBackend
from readthrough.core.logging.logger import get_logger, log_stage
from readthrough.core.resilience.safe_operation import safe_cache_operation
from readthrough.infrastructure.cache.basic_operations import BasicOperations
from readthrough.infrastructure.cache.factory import create_store
from readthrough.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)

Options = CacheOptions | Mapping[str, Any] | None


class CachingService:
    """
    Read-through caching service.

    STAGE-0: Service initialization

    Args:
        settings: Settings (defaults to the global settings)
        store: Backend store; built from settings when omitted
        metrics_collector: Prometheus collector; the global one is used when
            CACHE_PROMETHEUS_ENABLED and none is given
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store: CacheBackend | None = None,
        metrics_collector: Any | None = None,
    ):
        self.settings = settings or get_settings()
        cache_settings = self.settings.cache
        statistics_settings = self.settings.statistics

        self.name = cache_settings.CACHE_NAME
        self.store = store if store is not None else create_store(self.settings)

        if metrics_collector is None and statistics_settings.CACHE_PROMETHEUS_ENABLED:
            metrics_collector = get_metrics_collector()

        self.runtime_config = RuntimeConfigurationManager(
            cache_name=self.name,
            initial=StatisticsConfig(
                metrics_enabled=statistics_settings.CACHE_METRICS_ENABLED,
                key_metrics_enabled=statistics_settings.CACHE_KEY_METRICS_ENABLED,
            ),
        )
        self.statistics = StatisticsRecorder(self.name, self.runtime_config, metrics_collector)
        self.key_manager = KeyManager()
        self.tag_resolver = TagResolver()
        self.registry = CacheableRegistry()

        self.basic = BasicOperations(
            self.store,
            self.key_manager,
            self.tag_resolver,
            throw_on_errors=cache_settings.CACHE_THROW_ON_ERRORS,
        )
        self.coordinator = ReadThroughCoordinator(
            self.store,
            key_manager=self.key_manager,
            tag_resolver=self.tag_resolver,
            statistics=self.statistics,
            registry=self.registry,
            default_ttl=cache_settings.CACHE_DEFAULT_TTL,
            single_flight=cache_settings.CACHE_SINGLE_FLIGHT,
            cache_name=self.name,
        )
        self._initialized = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self) -> None:
        """Connect the store. Safe to call more than once."""
        if self._initialized:
            return
        await self.store.connect()
        self._initialized = True
        log_stage(
            logger,
            Stage.INITIALIZATION,
            "Caching service initialized",
            cache_name=self.name,
            namespace=getattr(self.store, "namespace", None),
            store=type(self.store).__name__,
        )

    async def dispose(self) -> None:
        if not self._initialized:
            return
        await self.store.disconnect()
        self._initialized = False
        log_stage(logger, Stage.INITIALIZATION, "Caching service disposed", cache_name=self.name)

    async def health_check(self) -> dict[str, Any]:
        return await self.store.health_check()

    # =========================================================================
    # Basic API
    # =========================================================================

    def create_key(self, descriptor: Any, context_fields: Mapping[str, Any] | None = None, template: str | None = None) -> str:
        return self.key_manager.create_key(descriptor, context_fields, template)

    async def set(self, key: Any, value: Any, ttl: int | None = None, tags: Any = None) -> None:
        ttl = self.settings.cache.CACHE_DEFAULT_TTL if ttl is None else ttl
        await self.basic.set(key, value, ttl, tags)

    async def get(self, key: Any) -> Any:
        return await self.basic.get(key)

    async def has(self, key: Any) -> bool:
        return await self.basic.has(key)

    async def delete(self, key: Any) -> bool:
        return await self.basic.delete(key)

    async def clear(self) -> None:
        """
        Clear the store and every statistic of this cache.

        A statistics failure is logged and never fails the clear.
        """
        await self.basic.clear()
        await safe_cache_operation(self.statistics.clear_metrics, "clear_metrics", {"cache_name": self.name})

    async def delete_by_tag(self, tag: str) -> int:
        return await self.basic.delete_by_tag(tag)

    async def metadata(self, key: Any) -> dict[str, Any] | None:
        return await self.basic.metadata(key)

    async def tags(self, key: Any) -> list[str]:
        return await self.basic.tags(key)

    def iterate(self) -> AsyncIterator[tuple[str, Any]]:
        return self.basic.iterate()

    def resolve_tags(self, tag_spec: Any, response: Any, context_fields: Mapping[str, Any] | None = None) -> list[str]:
        return self.tag_resolver.resolve_tags(tag_spec, response, context_fields)

    # =========================================================================
    # Read-through API
    # =========================================================================

    @property
    def rt(self) -> ReadThroughCoordinator:
        """Read-through operations returning full envelopes."""
        return self.coordinator

    async def send(
        self,
        service: Any,
        request: ServiceCallRequest | Mapping[str, Any],
        options: Options = None,
        context: ContextSource = None,
        response: Any = None,
    ) -> Any:
        envelope = await self.coordinator.send(service, request, options, context, response)
        return envelope.result

    async def run(
        self,
        executor: Any,
        query: StructuredQueryRequest | Mapping[str, Any],
        options: Options = None,
        context: ContextSource = None,
        response: Any = None,
    ) -> Any:
        envelope = await self.coordinator.run(executor, query, options, context, response)
        return envelope.result

    async def exec(
        self,
        fn: Callable[..., Any],
        args: tuple[Any, ...] | list[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
        options: Options = None,
        context: ContextSource = None,
        name: str | None = None,
    ) -> Any:
        envelope = await self.coordinator.exec(fn, args, kwargs, options, context, name)
        return envelope.result

    def wrap(
        self,
        fn: Callable[..., Any],
        options: Options = None,
        context: ContextSource = None,
        name: str | None = None,
    ) -> Callable[..., Awaitable[Any]]:
        wrapped = self.coordinator.wrap(fn, options, context, name)

        @functools.wraps(fn)
        async def unwrapped(*args: Any, **kwargs: Any) -> Any:
            envelope = await wrapped(*args, **kwargs)
            return envelope.result

        return unwrapped

    def add_cacheable_function(self, name: str, options: Mapping[str, Any] | None = None, bound: bool = False) -> None:
        self.registry.add_cacheable_function(name, options, bound)

    def add_cacheable_entity(self, name: str, options: Mapping[str, Any] | None = None) -> None:
        self.registry.add_cacheable_entity(name, options)

    # =========================================================================
    # Statistics & runtime configuration
    # =========================================================================

    def get_current_metrics(self) -> dict[str, Any]:
        return self.statistics.get_current_stats()

    def get_current_key_metrics(self) -> dict[str, dict[str, Any]]:
        return self.statistics.get_current_key_metrics()

    def get_key_metrics(self, key: str) -> dict[str, Any] | None:
        return self.statistics.get_key_metrics(key)

    def clear_metrics(self) -> None:
        self.statistics.clear_metrics()

    def clear_key_metrics(self) -> None:
        self.statistics.clear_key_metrics()

    def set_metrics_enabled(self, enabled: bool) -> StatisticsConfig:
        return self.runtime_config.set_metrics_enabled(enabled)

    def set_key_metrics_enabled(self, enabled: bool) -> StatisticsConfig:
        return self.runtime_config.set_key_metrics_enabled(enabled)

    def get_runtime_configuration(self) -> dict[str, Any]:
        return self.runtime_config.to_dict()


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_caching_service: CachingService | None = None


def get_caching_service() -> CachingService:
    """
    Get the global caching service instance (singleton).

    Returns:
        CachingService: Global caching service instance
    """
    global _caching_service

    if _caching_service is None:
        _caching_service = CachingService()

    return _caching_service


async def init_caching_service() -> CachingService:
    """
    Initialize and connect the global caching service.

    Returns:
        CachingService: Initialized caching service
    """
    service = get_caching_service()
    await service.initialize()
    return service


async def close_caching_service() -> None:
    """Shutdown the global caching service."""
    global _caching_service

    if _caching_service:
        await _caching_service.dispose()
        _caching_service = None
