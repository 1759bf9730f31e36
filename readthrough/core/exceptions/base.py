"""
Base Exception Class

Root of every error raised by the caching layer. Themed subclasses live in
cache.py and statistics.py.

Errors pick up the correlation ID of the current call chain automatically, so
an error surfaced by the admin API can be matched with the log lines of the
request that produced it.
"""

from typing import Any

from readthrough.core.logging.logger import get_correlation_id


class ReadThroughBaseError(Exception):
    """
    Base exception for all read-through caching errors.

    Attributes:
        message: Human readable message
        correlation_id: Correlation ID of the failing call chain
        details: Diagnostic fields (key, namespace, command, ...)

    Example:
        raise CacheKeyError("Cache key must be a non-empty string", details={"key": "''"})
    """

    def __init__(
        self, message: str, correlation_id: str | None = None, details: dict[str, Any] | None = None
    ):
        self.message = message
        self.correlation_id = correlation_id or get_correlation_id()
        self.details = dict(details or {})
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Wire form used by the admin API error handler."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "correlation_id": self.correlation_id,
            "details": self.details,
        }

    def with_suggestion(self, suggestion: str) -> "ReadThroughBaseError":
        self.details["suggestion"] = suggestion
        return self

    def with_context(self, **context: Any) -> "ReadThroughBaseError":
        """
        Attach fields known only further up the stack.

        A codec error knows the value type; the store that caught it adds the
        key and namespace before re-raising.
        """
        self.details.update(context)
        return self

    @classmethod
    def from_exception(cls, exc: BaseException, message: str | None = None, **details: Any) -> "ReadThroughBaseError":
        """
        Translate a client library exception (redis, orjson) into this
        hierarchy, keeping the original type and message in ``details``.

        Raise the result ``from exc`` so the original traceback is chained.
        """
        return cls(
            message or str(exc),
            details={"cause": type(exc).__name__, "cause_message": str(exc), **details},
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, correlation_id={self.correlation_id!r})"


class ConfigurationError(ReadThroughBaseError):
    """Raised when a store or cache option is configured inconsistently."""
