"""
Read-Through Coordinator

The cache-aside protocol for every request shape.

ALGORITHM (identical for all three descriptor variants):
---------------------------------------------------------
1. OPTIONS:  resolve CacheOptions (ttl=0, no key template, no tags by
             default). Mutating requests (POST/PUT/PATCH/DELETE service
             calls, non-SELECT queries) bypass the cache: the origin is
             called directly and no backend call is made.
2. KEY:      key = KeyManager.create_key(descriptor, context, template);
             start the timer.
3. LOOKUP:   guarded has(key), then guarded get(key) when has said yes.
             A value -> guarded record_hit, return the hit envelope.
             A failing/lying has, a failing get or no value -> miss path.
4. MISS:     call the origin UNGUARDED (its errors are logged and re-raised
             unchanged, nothing is written). Then guarded record_miss,
             resolve tags, build CacheEntry, guarded set(key, entry, ttl),
             return the miss envelope.

"Guarded" means routed through ``safe_cache_operation``: backend failures
become ``cache_errors`` entries, statistics failures are only logged.

Usage:
    coordinator = ReadThroughCoordinator(store, KeyManager(), TagResolver(), recorder)
    envelope = await coordinator.send(
        books_service,
        ServiceCallRequest(method="GET", path="/Books"),
        options={"ttl": 60, "tags": ["books"]},
        context=RequestContext(tenant="t1"),
    )
    envelope.hit, envelope.result, envelope.cache_errors
"""

import asyncio
import functools
import inspect
import time
from collections.abc import Awaitable, Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import orjson

from readthrough.caching.descriptors import (
    GenericInvocation,
    RequestDescriptor,
    ServiceCallRequest,
    StructuredQueryRequest,
)
from readthrough.caching.key_manager import KeyManager
from readthrough.caching.models import (
    CacheEntry,
    CacheOptions,
    OperationMetadata,
    ReadThroughResult,
    RequestContext,
    ResultMetadata,
)
from readthrough.caching.registry import CacheableRegistry
from readthrough.caching.statistics import StatisticsRecorder
from readthrough.caching.tag_resolver import TagResolver
from readthrough.core.config.constants import (
    CACHE_STATUS_HIT,
    CACHE_STATUS_MISS,
    DEFAULT_TTL,
    HEADER_CACHE_KEY,
    HEADER_CACHE_STATUS,
    OPERATION_TYPE_READ_THROUGH,
    OperationKind,
    Stage,
)
from readthrough.core.interfaces.cache import CacheBackend
from readthrough.core.interfaces.origin import QueryExecutor, ServiceOrigin, TransportResponse
from readthrough.core.logging.logger import get_logger, log_stage
from readthrough.core.resilience.safe_operation import CacheErrorRecord, safe_cache_operation

logger = get_logger(__name__)

ContextSource = RequestContext | Callable[[], RequestContext] | None


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def _dumps(value: Any) -> str | None:
    if value is None:
        return None
    try:
        return orjson.dumps(value, default=str).decode()
    except (TypeError, orjson.JSONEncodeError):
        return repr(value)


def _invocation_name(fn: Callable[..., Any]) -> str:
    """
    Stable default name for a cached callable.

    Module plus qualified name; lambdas and nested functions share a qualname
    (``<lambda>``, ``outer.<locals>.inner``), so their definition site is
    appended. Two closures defined on the same line still collide and need an
    explicit ``name``.
    """
    qualname = getattr(fn, "__qualname__", None)
    if qualname is None:
        return repr(fn)
    name = f"{getattr(fn, '__module__', None)}.{qualname}"
    code = getattr(fn, "__code__", None)
    if "<" in qualname and code is not None:
        name = f"{name}@{code.co_filename}:{code.co_firstlineno}"
    return name


@dataclass(frozen=True)
class _ReadThroughPlan:
    """Everything the cache-aside run needs, prepared per descriptor variant."""

    descriptor: RequestDescriptor
    options: CacheOptions
    context_fields: dict[str, Any]
    metadata: OperationMetadata
    invoke: Callable[[], Awaitable[Any]]


class ReadThroughCoordinator:
    """
    Orchestrates read-through calls against one backend store.

    STAGE-0..5: Read-through lifecycle (see module docstring)

    Concurrency:
    - no coalescing by default: concurrent misses on the same key each call
      the origin and each write, last writer wins
    - ``single_flight=True`` serializes read-throughs per key, so followers
      find the leader's entry
    """

    def __init__(
        self,
        backend: CacheBackend,
        key_manager: KeyManager | None = None,
        tag_resolver: TagResolver | None = None,
        statistics: StatisticsRecorder | None = None,
        registry: CacheableRegistry | None = None,
        default_ttl: int = DEFAULT_TTL,
        single_flight: bool = False,
        cache_name: str = "caching",
    ):
        self.backend = backend
        self.key_manager = key_manager or KeyManager()
        self.tag_resolver = tag_resolver or TagResolver()
        self.statistics = statistics
        self.registry = registry or CacheableRegistry()
        self.default_ttl = default_ttl
        self.single_flight = single_flight
        self.cache_name = cache_name
        self._key_locks: dict[str, list[Any]] = {}

    # =========================================================================
    # Public API
    # =========================================================================

    async def send(
        self,
        service: ServiceOrigin,
        request: ServiceCallRequest | Mapping[str, Any],
        options: CacheOptions | Mapping[str, Any] | None = None,
        context: ContextSource = None,
        response: TransportResponse | None = None,
    ) -> ReadThroughResult:
        """Read-through a service call (``service.send(request)``)."""
        if isinstance(request, Mapping):
            request = ServiceCallRequest(**request)
        return await self.execute(request, service, options, context, response)

    async def run(
        self,
        executor: QueryExecutor,
        query: StructuredQueryRequest | Mapping[str, Any],
        options: CacheOptions | Mapping[str, Any] | None = None,
        context: ContextSource = None,
        response: TransportResponse | None = None,
    ) -> ReadThroughResult:
        """Read-through a structured query (``executor.run(query)``)."""
        if isinstance(query, Mapping):
            query = StructuredQueryRequest(**query)
        return await self.execute(query, executor, options, context, response)

    async def exec(
        self,
        fn: Callable[..., Any],
        args: tuple[Any, ...] | list[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
        options: CacheOptions | Mapping[str, Any] | None = None,
        context: ContextSource = None,
        name: str | None = None,
    ) -> ReadThroughResult:
        """
        Read-through an arbitrary call ``fn(*args, **kwargs)``.

        Without ``name`` the call is identified by the function's module and
        qualified name (plus definition site for lambdas and nested functions).
        """
        invocation = GenericInvocation(
            name=name or _invocation_name(fn),
            args=tuple(args),
            kwargs=dict(kwargs or {}),
        )
        return await self.execute(invocation, fn, options, context)

    def wrap(
        self,
        fn: Callable[..., Any],
        options: CacheOptions | Mapping[str, Any] | None = None,
        context: ContextSource = None,
        name: str | None = None,
    ) -> Callable[..., Awaitable[ReadThroughResult]]:
        """
        Wrap a function so every call is read through the cache.

        ``context`` may be a callable; it is then evaluated on every call.
        """
        invocation_name = name or _invocation_name(fn)

        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> ReadThroughResult:
            return await self.exec(fn, args, kwargs, options=options, context=context, name=invocation_name)

        return wrapper

    async def execute(
        self,
        descriptor: RequestDescriptor,
        origin: Any,
        options: CacheOptions | Mapping[str, Any] | None = None,
        context: ContextSource = None,
        response: TransportResponse | None = None,
    ) -> ReadThroughResult:
        """
        Run the read-through algorithm for any descriptor variant.

        Raises:
            TypeError: descriptor is not a RequestDescriptor
            Exception: whatever the origin raised, unchanged
        """
        request_context = self._resolve_context(context)

        match descriptor:
            case ServiceCallRequest():
                plan = self._plan_service_call(descriptor, origin, options, request_context)
            case StructuredQueryRequest():
                plan = self._plan_query(descriptor, origin, options, request_context)
            case GenericInvocation():
                plan = self._plan_invocation(descriptor, origin, options, request_context)
            case _:
                raise TypeError(f"Unsupported request descriptor: {type(descriptor).__name__}")

        if descriptor.is_mutation:
            log_stage(
                logger,
                Stage.BYPASS,
                "Mutating request bypasses the cache",
                level="debug",
                operation=plan.metadata.operation,
                target=plan.metadata.target,
            )
            return ReadThroughResult.bypass(await self._call_origin(plan))

        key = self.key_manager.create_key(descriptor, plan.context_fields, plan.options.key)

        if not self.single_flight:
            return await self._cache_aside(plan, key, response)
        async with self._single_flight(key):
            return await self._cache_aside(plan, key, response)

    # =========================================================================
    # Plans per descriptor variant
    # =========================================================================

    def _plan_service_call(
        self,
        request: ServiceCallRequest,
        service: ServiceOrigin,
        options: CacheOptions | Mapping[str, Any] | None,
        context: RequestContext,
    ) -> _ReadThroughPlan:
        service_name = getattr(service, "name", None)
        context_fields = {
            **context.fields(),
            **{k: v for k, v in (("tenant", request.tenant), ("user", request.user), ("locale", request.locale)) if v is not None},
            "service": service_name,
            **request.key_fields(),
        }
        cache_options = self.registry.options_for(request, options, self.default_ttl)
        log_stage(
            logger,
            Stage.OPTIONS_RESOLUTION,
            "Service call options resolved",
            level="debug",
            target=request.target,
            service_event=request.event,
            registered=self.registry.is_registered(request),
            ttl=cache_options.ttl,
        )
        metadata = self._metadata(
            OperationKind.SEND,
            request,
            context_fields,
            cache_options,
            query=_dumps(request.query),
            details=_dumps(
                {"method": request.method, "data": request.data, "params": request.params, "path": request.path}
            ),
        )
        return _ReadThroughPlan(request, cache_options, context_fields, metadata, lambda: service.send(request))

    def _plan_query(
        self,
        query: StructuredQueryRequest,
        executor: QueryExecutor,
        options: CacheOptions | Mapping[str, Any] | None,
        context: RequestContext,
    ) -> _ReadThroughPlan:
        context_fields = {
            **context.fields(),
            "service": getattr(executor, "name", None),
            **query.key_fields(),
        }
        cache_options = CacheOptions(ttl=self.default_ttl).merged(options)
        metadata = self._metadata(
            OperationKind.SELECT,
            query,
            context_fields,
            cache_options,
            query=_dumps(query.payload()),
        )
        return _ReadThroughPlan(query, cache_options, context_fields, metadata, lambda: executor.run(query))

    def _plan_invocation(
        self,
        invocation: GenericInvocation,
        fn: Callable[..., Any],
        options: CacheOptions | Mapping[str, Any] | None,
        context: RequestContext,
    ) -> _ReadThroughPlan:
        context_fields = {**context.fields(), "service": None, **invocation.key_fields()}
        cache_options = CacheOptions(ttl=self.default_ttl).merged(options)
        metadata = self._metadata(
            OperationKind.EXEC,
            invocation,
            context_fields,
            cache_options,
            details=_dumps(invocation.payload()),
        )

        async def invoke() -> Any:
            result = fn(*invocation.args, **invocation.kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result

        return _ReadThroughPlan(invocation, cache_options, context_fields, metadata, invoke)

    def _metadata(
        self,
        kind: OperationKind,
        descriptor: RequestDescriptor,
        context_fields: dict[str, Any],
        options: CacheOptions,
        query: str | None = None,
        details: str | None = None,
    ) -> OperationMetadata:
        return OperationMetadata(
            operation=kind.value,
            data_type=type(descriptor).__name__,
            operation_type=OPERATION_TYPE_READ_THROUGH,
            tenant=context_fields.get("tenant"),
            user=context_fields.get("user"),
            locale=context_fields.get("locale"),
            target=context_fields.get("target") or context_fields.get("service"),
            query=query,
            subject=_dumps(context_fields.get("params") or None),
            details=details,
            cache_options=_dumps(options.to_dict()),
        )

    # =========================================================================
    # Cache-aside
    # =========================================================================

    async def _cache_aside(self, plan: _ReadThroughPlan, key: str, response: Any) -> ReadThroughResult:
        errors: list[CacheErrorRecord] = []
        start = time.perf_counter()

        cached = await self._lookup(key, errors)
        if cached is not None:
            latency = _elapsed_ms(start)
            await self._record("record_hit", latency, key, plan.metadata)
            self._set_headers(response, key, hit=True)
            log_stage(logger, Stage.CACHE_HIT, "Cache hit", level="debug", cache_key=key, latency_ms=round(latency, 3))
            return ReadThroughResult(
                result=cached,
                cache_key=key,
                metadata=ResultMetadata(hit=True, latency=latency),
                cache_errors=tuple(errors),
            )

        log_stage(logger, Stage.CACHE_MISS, "Cache miss", level="debug", cache_key=key)
        result = await self._call_origin(plan, key)
        latency = _elapsed_ms(start)
        await self._record("record_miss", latency, key, plan.metadata)

        tags = self.tag_resolver.resolve_tags(plan.options.tags, result, self._tag_context(plan, key))
        entry = CacheEntry(value=result, tags=tuple(tags))
        outcome = await safe_cache_operation(
            lambda: self.backend.set(key, entry, plan.options.ttl),
            "set",
            {"key": key, "ttl": plan.options.ttl},
        )
        if outcome.success:
            log_stage(
                logger,
                Stage.CACHE_WRITE,
                "Cache entry written",
                level="debug",
                cache_key=key,
                ttl=plan.options.ttl,
                tags=tags,
            )
        else:
            await self._register_error(outcome.error, errors, key)

        self._set_headers(response, key, hit=False)
        return ReadThroughResult(
            result=result,
            cache_key=key,
            metadata=ResultMetadata(hit=False, latency=latency),
            cache_errors=tuple(errors),
        )

    async def _lookup(self, key: str, errors: list[CacheErrorRecord]) -> Any:
        has = await safe_cache_operation(lambda: self.backend.has(key), "has", {"key": key})
        if not has.success:
            await self._register_error(has.error, errors, key)
            return None
        if not has.result:
            return None

        got = await safe_cache_operation(lambda: self.backend.get(key), "get", {"key": key})
        if not got.success:
            await self._register_error(got.error, errors, key)
            return None

        value = got.result
        if value is None:
            log_stage(logger, Stage.CACHE_LOOKUP, "Key reported present but no value found", level="debug", cache_key=key)
        if isinstance(value, CacheEntry):
            return value.value
        return value

    async def _call_origin(self, plan: _ReadThroughPlan, key: str | None = None) -> Any:
        try:
            return await plan.invoke()
        except Exception as e:
            log_stage(
                logger,
                Stage.ORIGIN_CALL,
                "Origin call failed",
                level="error",
                operation=plan.metadata.operation,
                target=plan.metadata.target,
                cache_key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    async def _record(self, method: str, latency: float, key: str, metadata: OperationMetadata) -> None:
        if self.statistics is None:
            return
        recorder = getattr(self.statistics, method)
        await safe_cache_operation(lambda: recorder(latency, key, metadata), method, {"key": key})

    async def _register_error(self, error: CacheErrorRecord, errors: list[CacheErrorRecord], key: str) -> None:
        errors.append(error)
        if self.statistics is not None:
            await safe_cache_operation(
                lambda: self.statistics.record_error(error.operation, key),
                "record_error",
                {"key": key},
            )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _tag_context(self, plan: _ReadThroughPlan, key: str) -> dict[str, Any]:
        params = plan.context_fields.get("params") or {}
        return {
            **params,
            **plan.context_fields,
            "hash": self.key_manager.create_content_hash(plan.descriptor),
            "key": key,
        }

    @staticmethod
    def _resolve_context(context: ContextSource) -> RequestContext:
        if context is None:
            return RequestContext()
        if isinstance(context, RequestContext):
            return context
        if callable(context):
            return context() or RequestContext()
        raise TypeError(f"Unsupported request context: {type(context).__name__}")

    @staticmethod
    def _set_headers(response: Any, key: str, hit: bool) -> None:
        headers = getattr(response, "headers", None)
        if headers is None:
            return
        try:
            headers[HEADER_CACHE_KEY] = key
            headers[HEADER_CACHE_STATUS] = CACHE_STATUS_HIT if hit else CACHE_STATUS_MISS
        except (TypeError, AttributeError) as e:
            log_stage(logger, Stage.CACHE_WRITE, "Diagnostic headers not set", level="debug", error=str(e))

    @asynccontextmanager
    async def _single_flight(self, key: str):
        slot = self._key_locks.get(key)
        if slot is None:
            slot = self._key_locks[key] = [asyncio.Lock(), 0]
        slot[1] += 1
        try:
            async with slot[0]:
                yield
        finally:
            slot[1] -= 1
            if slot[1] == 0:
                self._key_locks.pop(key, None)
