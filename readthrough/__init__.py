"""
readthrough - read-through caching orchestration layer

Sits between request producers (service calls, structured queries, arbitrary
invocations) and their origin, serving results from a cache store with tag
based invalidation and hit/miss statistics.

Quick start:
    from readthrough import CachingService, RequestContext, ServiceCallRequest

    service = CachingService()
    await service.initialize()
    envelope = await service.rt.send(
        books_service,
        ServiceCallRequest(method="GET", path="/Books"),
        {"ttl": 60, "tags": ["books"]},
        RequestContext(tenant="t1"),
    )
"""

from readthrough.caching import (
    CacheEntry,
    CacheOptions,
    GenericInvocation,
    KeyManager,
    ReadThroughCoordinator,
    ReadThroughResult,
    RequestContext,
    ServiceCallRequest,
    StructuredQueryRequest,
    TagResolver,
)
from readthrough.service import (
    CachingService,
    close_caching_service,
    get_caching_service,
    init_caching_service,
)

__version__ = "1.0.0"

__all__ = [
    "CacheEntry",
    "CacheOptions",
    "CachingService",
    "GenericInvocation",
    "KeyManager",
    "ReadThroughCoordinator",
    "ReadThroughResult",
    "RequestContext",
    "ServiceCallRequest",
    "StructuredQueryRequest",
    "TagResolver",
    "close_caching_service",
    "get_caching_service",
    "init_caching_service",
]
