"""
Read-Through Data Model

Plain dataclasses shared by the caching layer:

- RequestContext: the ambient tenant/user/locale, passed explicitly per call
- CacheOptions: ttl, key template and tag specification
- CacheEntry: the immutable record written to the backend on a miss
- OperationMetadata: per-call diagnostic record handed to statistics
- ReadThroughResult: the envelope every coordinator call returns
"""

import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from readthrough.core.config.constants import DEFAULT_TTL
from readthrough.core.resilience.safe_operation import CacheErrorRecord


@dataclass(frozen=True)
class RequestContext:
    """
    Ambient request context.

    Attributes:
        tenant: Tenant identifier (multi-tenant isolation)
        user: User identifier
        locale: Locale of the request (e.g. 'en', 'de_CH')
    """

    tenant: str | None = None
    user: str | None = None
    locale: str | None = None

    def fields(self) -> dict[str, str | None]:
        return {"tenant": self.tenant, "user": self.user, "locale": self.locale}


@dataclass(frozen=True)
class CacheOptions:
    """
    Per-call cache options.

    Attributes:
        ttl: Time-to-live in seconds, 0 = no expiry (policy owned by backend)
        key: Optional key template, e.g. "{tenant}:{hash}"
        tags: Tag specification (list of strings/rules, or a callable)
    """

    ttl: int = DEFAULT_TTL
    key: str | None = None
    tags: Any = None

    @classmethod
    def coerce(cls, value: "CacheOptions | Mapping[str, Any] | None", default_ttl: int = DEFAULT_TTL) -> "CacheOptions":
        """
        Build options from an options object, a plain mapping, or None.

        Mapping keys: ``ttl`` (alias ``ttlSeconds``), ``key`` (alias
        ``keyTemplate``) and ``tags``. Malformed values degrade to defaults
        instead of raising.
        """
        if isinstance(value, CacheOptions):
            return value
        if not isinstance(value, Mapping):
            return cls(ttl=default_ttl)

        ttl = value.get("ttl", value.get("ttlSeconds", default_ttl))
        key = value.get("key", value.get("keyTemplate"))
        return cls(
            ttl=_coerce_ttl(ttl, default_ttl),
            key=key if isinstance(key, str) and key else None,
            tags=value.get("tags"),
        )

    def merged(self, overrides: "CacheOptions | Mapping[str, Any] | None") -> "CacheOptions":
        """Return a copy where explicitly given override fields win."""
        if overrides is None:
            return self
        if isinstance(overrides, CacheOptions):
            return overrides
        if not isinstance(overrides, Mapping):
            return self

        changes: dict[str, Any] = {}
        if "ttl" in overrides or "ttlSeconds" in overrides:
            changes["ttl"] = _coerce_ttl(overrides.get("ttl", overrides.get("ttlSeconds")), self.ttl)
        if "key" in overrides or "keyTemplate" in overrides:
            key = overrides.get("key", overrides.get("keyTemplate"))
            changes["key"] = key if isinstance(key, str) and key else None
        if "tags" in overrides:
            changes["tags"] = overrides["tags"]
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        tags = self.tags
        if callable(tags):
            tags = getattr(tags, "__qualname__", repr(tags))
        return {"ttl": self.ttl, "key": self.key, "tags": tags}


def _coerce_ttl(value: Any, fallback: int) -> int:
    if isinstance(value, bool):
        return fallback
    try:
        ttl = int(value)
    except (TypeError, ValueError):
        return fallback
    return ttl if ttl >= 0 else fallback


def now_ms() -> float:
    """Wall-clock creation instant in epoch milliseconds."""
    return time.time() * 1000


@dataclass(frozen=True)
class CacheEntry:
    """
    Immutable record stored under a cache key.

    Replaced wholesale when the same key is written again; never mutated.
    """

    value: Any
    tags: tuple[str, ...] = ()
    timestamp: float = field(default_factory=now_ms)

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "tags": list(self.tags), "timestamp": self.timestamp}


@dataclass(frozen=True)
class OperationMetadata:
    """
    Per-call diagnostic record, attached to statistics calls only.

    The serialized fields (query, subject, details, cache_options) hold JSON
    strings so the record stays flat and cheap to store.
    """

    operation: str
    data_type: str
    operation_type: str
    tenant: str | None = None
    user: str | None = None
    locale: str | None = None
    target: str | None = None
    query: str | None = None
    subject: str | None = None
    details: str | None = None
    cache_options: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "dataType": self.data_type,
            "operationType": self.operation_type,
            "tenant": self.tenant,
            "user": self.user,
            "locale": self.locale,
            "target": self.target,
            "query": self.query,
            "subject": self.subject,
            "metadata": self.details,
            "cacheOptions": self.cache_options,
        }


@dataclass(frozen=True)
class ResultMetadata:
    """Hit flag and latency (milliseconds) of a read-through call."""

    hit: bool = False
    latency: float = 0.0


@dataclass(frozen=True)
class ReadThroughResult:
    """
    Envelope returned by every coordinator call.

    Wire form (``to_dict``)::

        {"result": ..., "cacheKey": "...", "metadata": {"hit": true, "latency": 0.4},
         "cacheErrors": [{"message": ..., "operation": ..., "context": {...}}]}
    """

    result: Any = None
    cache_key: str | None = None
    metadata: ResultMetadata = field(default_factory=ResultMetadata)
    cache_errors: tuple[CacheErrorRecord, ...] = ()

    @property
    def hit(self) -> bool:
        return self.metadata.hit

    @property
    def latency(self) -> float:
        return self.metadata.latency

    @classmethod
    def bypass(cls, result: Any = None) -> "ReadThroughResult":
        """Envelope for requests that were not eligible for caching."""
        return cls(result=result)

    def to_dict(self) -> dict[str, Any]:
        return {
            "result": self.result,
            "cacheKey": self.cache_key,
            "metadata": {"hit": self.metadata.hit, "latency": self.metadata.latency},
            "cacheErrors": [error.to_dict() for error in self.cache_errors],
        }
