"""
Safe Cache Operation - the fallible-operation combinator

Every call into a backend store (has/get/set/delete/clear) and every
statistics recording call goes through ``safe_cache_operation``. It never
raises: a failure becomes an ``OperationResult`` carrying a
``CacheErrorRecord`` and a warning log line.

MECHANISM:
----------
1. Call the operation; await the result when it is awaitable.
2. On success return ``OperationResult(success=True, result=value)``.
3. On any ``Exception`` log at warning level with the operation name and
   context, then return ``OperationResult(success=False, error=record)``.

Cancellation (``asyncio.CancelledError``) is a ``BaseException`` and is not
caught, so task cancellation still propagates.

The origin call of a read-through (service, query, wrapped function) is
never routed through here: origin failures must reach the caller.
"""

import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from readthrough.core.config.constants import Stage
from readthrough.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheErrorRecord:
    """
    Diagnostic record of a failed cache operation.

    Attributes:
        message: Error message of the underlying exception
        operation: Name of the failed operation ('has', 'get', 'set', ...)
        context: Call context (key, ttl, service name, ...)
    """

    message: str
    operation: str
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "operation": self.operation, "context": dict(self.context)}


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a guarded operation: either a result or an error record."""

    success: bool
    result: Any = None
    error: CacheErrorRecord | None = None


async def safe_cache_operation(
    operation: Callable[[], Any],
    operation_name: str,
    context: dict[str, Any] | None = None,
) -> OperationResult:
    """
    Execute a cache operation, converting any failure into a diagnostic.

    Args:
        operation: Zero-argument callable; may return an awaitable
        operation_name: Name used in logs and in the error record
        context: Extra information attached to the log line and record

    Returns:
        OperationResult - never raises for ordinary exceptions

    Example:
        outcome = await safe_cache_operation(
            lambda: backend.has(key), "has", {"key": key}
        )
        hit = outcome.success and outcome.result
    """
    context = dict(context or {})
    try:
        result = operation()
        if inspect.isawaitable(result):
            result = await result
        return OperationResult(success=True, result=result)
    except Exception as e:
        log_stage(
            logger,
            Stage.RESILIENCE,
            f"Cache {operation_name} failed",
            level="warning",
            operation=operation_name,
            error=str(e),
            error_type=type(e).__name__,
            context=context,
        )
        return OperationResult(
            success=False,
            error=CacheErrorRecord(message=str(e), operation=operation_name, context=context),
        )
