"""
Configuration Module

Centralized, type-safe configuration for the read-through caching layer.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: System-wide constants, enums and header names

Usage:
------
```python
from readthrough.core.config import get_settings
from readthrough.core.config.constants import Stage

settings = get_settings()
ttl = settings.cache.CACHE_DEFAULT_TTL
```

Environment Variables:
---------------------
```bash
CACHE_STORE=redis
CACHE_DEFAULT_TTL=300
CACHE_METRICS_ENABLED=true
REDIS_HOST=localhost
LOG_FORMAT=console
```
"""

from readthrough.core.config.constants import (
    CACHE_STATUS_HIT,
    CACHE_STATUS_MISS,
    DEFAULT_TTL,
    HEADER_CACHE_KEY,
    HEADER_CACHE_STATUS,
    MUTATING_METHODS,
    CacheOperation,
    OperationKind,
    Stage,
    StoreType,
)
from readthrough.core.config.settings import Settings, get_settings, reload_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "reload_settings",
    # Enums
    "Stage",
    "CacheOperation",
    "OperationKind",
    "StoreType",
    # Constants
    "DEFAULT_TTL",
    "MUTATING_METHODS",
    "HEADER_CACHE_KEY",
    "HEADER_CACHE_STATUS",
    "CACHE_STATUS_HIT",
    "CACHE_STATUS_MISS",
]
