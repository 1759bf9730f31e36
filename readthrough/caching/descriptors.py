"""
Request Descriptors

A read-through call is described by exactly one of three shapes:

    RequestDescriptor = ServiceCallRequest | StructuredQueryRequest | GenericInvocation

Each shape carries only what its algorithm needs and knows:
- payload():      the variable data hashed into the cache key
- key_fields():   the shape-specific key segments (method, path, target, ...)
- is_mutation:    whether the request expresses write intent (never cached)
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from readthrough.core.config.constants import CACHEABLE_QUERY_KINDS, MUTATING_METHODS


@dataclass(frozen=True)
class ServiceCallRequest:
    """
    A request sent to a service (``service.send(request)``).

    Attributes:
        method: Transport verb (GET, POST, ...)
        path: Resource path, e.g. "/Books"
        event: Operation/function name for function-style calls
        target: Target entity name (selects entity-level cache options)
        data: Request body
        params: Path/query parameters
        query: Optional structured query attached to the request
        headers: Transport headers (never part of the key)
        tenant/user/locale: Per-request overrides of the ambient context
    """

    method: str = "GET"
    path: str | None = None
    event: str | None = None
    target: str | None = None
    data: Any = None
    params: Mapping[str, Any] | None = None
    query: Any = None
    headers: Mapping[str, str] | None = None
    tenant: str | None = None
    user: str | None = None
    locale: str | None = None

    @property
    def is_mutation(self) -> bool:
        return (self.method or "GET").upper() in MUTATING_METHODS

    def payload(self) -> dict[str, Any]:
        return {"event": self.event, "data": self.data, "params": self.params, "query": self.query}

    def key_fields(self) -> dict[str, Any]:
        return {
            "method": (self.method or "").upper(),
            "path": self.path or self.event,
            "event": self.event,
            "target": self.target,
            "params": dict(self.params or {}),
        }


@dataclass(frozen=True)
class StructuredQueryRequest:
    """
    A structured query run by an executor (``executor.run(query)``).

    Attributes:
        kind: SELECT, INSERT, UPDATE, UPSERT or DELETE
        target: Entity the query addresses
        columns: Projected columns
        where: Predicate as a mapping of field -> value/condition
        order_by: Ordering clauses
        limit: Row limit
        params: Bound parameters
        entries: Row data for write queries
    """

    kind: str = "SELECT"
    target: str | None = None
    columns: tuple[str, ...] | None = None
    where: Mapping[str, Any] | None = None
    order_by: tuple[str, ...] | None = None
    limit: int | None = None
    params: Mapping[str, Any] | None = None
    entries: Any = None

    @property
    def is_mutation(self) -> bool:
        return (self.kind or "").upper() not in CACHEABLE_QUERY_KINDS

    def payload(self) -> dict[str, Any]:
        return {
            "kind": (self.kind or "").upper(),
            "target": self.target,
            "columns": self.columns,
            "where": self.where,
            "order_by": self.order_by,
            "limit": self.limit,
            "params": self.params,
        }

    def key_fields(self) -> dict[str, Any]:
        return {
            "method": (self.kind or "").upper(),
            "path": self.target,
            "target": self.target,
            "params": dict(self.params or {}),
        }


@dataclass(frozen=True)
class GenericInvocation:
    """
    An arbitrary call ``fn(*args, **kwargs)`` identified by name.

    Invocations are always treated as reads.
    """

    name: str
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_mutation(self) -> bool:
        return False

    def payload(self) -> dict[str, Any]:
        return {"args": list(self.args), "kwargs": dict(self.kwargs)}

    def key_fields(self) -> dict[str, Any]:
        return {"method": "EXEC", "path": self.name, "event": self.name}


RequestDescriptor = ServiceCallRequest | StructuredQueryRequest | GenericInvocation
