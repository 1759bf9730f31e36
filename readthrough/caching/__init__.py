"""
Caching Layer

The read-through protocol and its collaborators:

- **descriptors.py**: ServiceCallRequest | StructuredQueryRequest | GenericInvocation
- **models.py**: RequestContext, CacheOptions, CacheEntry, ReadThroughResult
- **key_manager.py**: deterministic cache keys and content hashes
- **tag_resolver.py**: tag specifications -> tag lists
- **statistics.py**: hit/miss/latency aggregates
- **runtime_config.py**: runtime statistics toggles
- **registry.py**: cache options declared per function/entity
- **coordinator.py**: the cache-aside algorithm
"""

from readthrough.caching.coordinator import ReadThroughCoordinator
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
from readthrough.caching.runtime_config import RuntimeConfigurationManager, StatisticsConfig
from readthrough.caching.statistics import StatisticsRecorder
from readthrough.caching.tag_resolver import TagResolver

__all__ = [
    "ReadThroughCoordinator",
    "GenericInvocation",
    "RequestDescriptor",
    "ServiceCallRequest",
    "StructuredQueryRequest",
    "KeyManager",
    "CacheEntry",
    "CacheOptions",
    "OperationMetadata",
    "ReadThroughResult",
    "RequestContext",
    "ResultMetadata",
    "CacheableRegistry",
    "RuntimeConfigurationManager",
    "StatisticsConfig",
    "StatisticsRecorder",
    "TagResolver",
]
