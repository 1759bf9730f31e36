"""
Resilience Module

Error isolation for cache-side operations.
"""

from readthrough.core.resilience.safe_operation import (
    CacheErrorRecord,
    OperationResult,
    safe_cache_operation,
)

__all__ = [
    "CacheErrorRecord",
    "OperationResult",
    "safe_cache_operation",
]
