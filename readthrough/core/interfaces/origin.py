"""
Origin Protocols

The origin is whatever produces the value on a cache miss: a remote service,
a query executor, or a plain callable. Transport responses are the optional
objects diagnostic headers are written to.
"""

from collections.abc import MutableMapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ServiceOrigin(Protocol):
    """A service that answers request-shaped calls (``send``)."""

    name: str

    async def send(self, request: Any) -> Any:
        ...


@runtime_checkable
class QueryExecutor(Protocol):
    """An executor for structured queries (``run``)."""

    name: str

    async def run(self, query: Any) -> Any:
        ...


@runtime_checkable
class TransportResponse(Protocol):
    """Anything with a mutable header mapping, e.g. a Starlette ``Response``."""

    headers: MutableMapping[str, str]
