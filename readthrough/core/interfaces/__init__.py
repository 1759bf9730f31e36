"""
Core Interfaces Module

Protocols for the collaborators of the read-through coordinator, enabling
dependency injection, testability, and loose coupling.

Components:
-----------
- **cache.py**: CacheBackend protocol for backend stores
- **origin.py**: ServiceOrigin / QueryExecutor protocols and TransportResponse

Interfaces follow the Protocol pattern (PEP 544) for structural subtyping:
- Runtime type checking with @runtime_checkable
- No inheritance required
- Easy mocking for tests
"""

from readthrough.core.interfaces.cache import CacheBackend
from readthrough.core.interfaces.origin import QueryExecutor, ServiceOrigin, TransportResponse

__all__ = [
    "CacheBackend",
    "QueryExecutor",
    "ServiceOrigin",
    "TransportResponse",
]
