"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across
the read-through caching layer.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic strings (headers, verbs, separators)
- Type-safe enums for operation names and log stages
- Easy to update and track changes
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Processing stages of a read-through call.

    Format: {SEQUENCE}_{DESCRIPTIVE_NAME}
    - SEQUENCE: Numeric order (0.0, 1.0, 2.0) or alphabetic prefix (R, S)
    - DESCRIPTIVE_NAME: Clear, uppercase description with underscores

    Used as the ``stage`` field of every structured log entry so that a log
    stream can be followed without looking at the code.
    """

    # Read-through lifecycle (sequential 0.0 - 5.0)
    INITIALIZATION = "0.0_INITIALIZATION"
    OPTIONS_RESOLUTION = "1.0_OPTIONS_RESOLUTION"
    KEY_DERIVATION = "1.1_KEY_DERIVATION"
    CACHE_LOOKUP = "2.0_CACHE_LOOKUP"
    CACHE_HIT = "2.1_CACHE_HIT"
    CACHE_MISS = "2.2_CACHE_MISS"
    ORIGIN_CALL = "3.0_ORIGIN_CALL"
    TAG_RESOLUTION = "4.0_TAG_RESOLUTION"
    CACHE_WRITE = "4.1_CACHE_WRITE"
    BYPASS = "5.0_MUTATION_BYPASS"

    # Cross-cutting concerns (alphabetic prefixes)
    RESILIENCE = "R_SAFE_CACHE_OPERATION"
    STATISTICS = "S_STATISTICS"
    INVALIDATION = "I_INVALIDATION"
    STORE = "B_BACKEND_STORE"
    METRICS = "M_METRICS_COLLECTION"
    API = "A_ADMIN_API"


# ============================================================================
# Backend Operations
# ============================================================================


class CacheOperation(str, Enum):
    """
    Operations accepted by the generic backend dispatch form.

    ``backend.send(CacheOperation.GET, {"key": k})`` must behave exactly like
    ``backend.get(k)``.
    """

    GET = "GET"
    SET = "SET"
    DELETE = "DELETE"
    HAS = "HAS"
    CLEAR = "CLEAR"


class OperationKind(str, Enum):
    """Read-through call shapes, recorded in statistics metadata."""

    SEND = "SEND"
    SELECT = "SELECT"
    EXEC = "EXEC"


class StoreType(str, Enum):
    """Supported backend stores."""

    MEMORY = "memory"
    REDIS = "redis"


# ============================================================================
# Request Classification
# ============================================================================

# Verbs that express write intent; such requests are never cached
MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# Structured query kinds that may be served from the cache
CACHEABLE_QUERY_KINDS = frozenset({"SELECT"})

# ============================================================================
# Key Construction
# ============================================================================

KEY_SEPARATOR = ":"
HASH_PLACEHOLDER = "hash"
OPERATION_TYPE_READ_THROUGH = "READ_THROUGH"

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_CACHE_KEY = "x-cache-key"
HEADER_CACHE_STATUS = "x-cache"
HEADER_CORRELATION_ID = "X-Correlation-ID"

CACHE_STATUS_HIT = "hit"
CACHE_STATUS_MISS = "miss"

# ============================================================================
# Defaults
# ============================================================================

DEFAULT_TTL = 0  # 0 = no expiry, the backend owns eviction
MEMORY_STORE_MAX_SIZE = 10000  # Maximum entries in the in-memory store
REDIS_SCAN_COUNT = 500  # Batch hint for SCAN iteration
