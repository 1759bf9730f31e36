"""
Statistics Exceptions

Raised by the StatisticsRecorder. Always swallowed by the caller: a statistics
failure is logged and never shows up in a read-through response.
"""

from readthrough.core.exceptions.base import ReadThroughBaseError


class StatisticsError(ReadThroughBaseError):
    """Raised when a statistics sample cannot be recorded."""
    pass
