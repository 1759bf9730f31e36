"""
Exception Module

Structured exception hierarchy for the read-through caching layer.

Module Structure:
-----------------
- **base.py**: ReadThroughBaseError base class + ConfigurationError
- **cache.py**: Backend store exceptions (Redis, in-memory)
- **statistics.py**: Statistics recording exceptions

Origin failures (the service, query executor or function being cached) are
deliberately not wrapped: they propagate to the caller unchanged.

Usage:
------
```python
from readthrough.core.exceptions import CacheConnectionError
from readthrough.core.exceptions.cache import CacheError
```
"""

# Base exception
from readthrough.core.exceptions.base import ConfigurationError, ReadThroughBaseError

# Cache exceptions
from readthrough.core.exceptions.cache import (
    CacheConnectionError,
    CacheError,
    CacheKeyError,
    CacheSerializationError,
)

# Statistics exceptions
from readthrough.core.exceptions.statistics import StatisticsError

__all__ = [
    # Base
    "ReadThroughBaseError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheKeyError",
    "CacheSerializationError",
    # Statistics
    "StatisticsError",
]
