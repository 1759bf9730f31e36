"""
Statistics Recorder

Running hit/miss/latency aggregates for a cache, globally and per key.

Every update is O(1): counters and latency sums/min/max are kept instead of
raw samples. The runtime configuration snapshot is read once per call, so a
toggle that happens mid-call never produces a half-recorded sample.

Callers (the read-through coordinator) route every recording call through
``safe_cache_operation``: a StatisticsError raised here is logged and never
reaches the request.
"""

import math
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from readthrough.caching.models import OperationMetadata
from readthrough.caching.runtime_config import RuntimeConfigurationManager
from readthrough.core.config.constants import Stage
from readthrough.core.exceptions.statistics import StatisticsError
from readthrough.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


@dataclass
class LatencyStats:
    """Count/sum/min/max aggregate of latencies in milliseconds."""

    count: int = 0
    total: float = 0.0
    min: float | None = None
    max: float | None = None

    def add(self, latency: float) -> None:
        self.count += 1
        self.total += latency
        self.min = latency if self.min is None else min(self.min, latency)
        self.max = latency if self.max is None else max(self.max, latency)

    @property
    def avg(self) -> float:
        return self.total / self.count if self.count else 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "avg": round(self.avg, 3),
            "min": round(self.min or 0.0, 3),
            "max": round(self.max or 0.0, 3),
        }


@dataclass
class CacheStats:
    """Aggregate for one scope: the whole cache or a single key."""

    hits: int = 0
    misses: int = 0
    errors: int = 0
    hit_latency: LatencyStats = field(default_factory=LatencyStats)
    miss_latency: LatencyStats = field(default_factory=LatencyStats)
    latency: LatencyStats = field(default_factory=LatencyStats)
    since: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    last_access: str | None = None
    last_operation: dict[str, Any] | None = None

    @property
    def requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_ratio(self) -> float:
        return self.hits / self.requests if self.requests else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "requests": self.requests,
            "hits": self.hits,
            "misses": self.misses,
            "errors": self.errors,
            "hitRatio": round(self.hit_ratio, 4),
            "missRatio": round(1 - self.hit_ratio, 4) if self.requests else 0.0,
            "latency": self.latency.to_dict(),
            "hitLatency": self.hit_latency.to_dict(),
            "missLatency": self.miss_latency.to_dict(),
            "since": self.since,
            "lastAccess": self.last_access,
            "lastOperation": self.last_operation,
        }


class StatisticsRecorder:
    """
    Records hit/miss samples for a cache.

    STAGE-S: Statistics

    Thread-safe: updates are serialized with a threading.Lock, so concurrent
    asyncio tasks and worker threads may record at the same time.

    Usage:
        recorder = StatisticsRecorder("caching", runtime_config)
        recorder.record_hit(0.4, key="t1:...", metadata=metadata)
        recorder.get_current_stats()
    """

    def __init__(
        self,
        cache_name: str,
        runtime_config: RuntimeConfigurationManager,
        metrics_collector: Any | None = None,
    ):
        self.cache_name = cache_name
        self.runtime_config = runtime_config
        self.metrics_collector = metrics_collector
        self._lock = threading.Lock()
        self._stats = CacheStats()
        self._key_stats: dict[str, CacheStats] = {}

    # =========================================================================
    # Recording
    # =========================================================================

    def record_hit(
        self,
        latency: float,
        key: str | None = None,
        metadata: OperationMetadata | None = None,
    ) -> None:
        """Record a cache hit with its latency in milliseconds."""
        self._record(True, latency, key, metadata)

    def record_miss(
        self,
        latency: float,
        key: str | None = None,
        metadata: OperationMetadata | None = None,
    ) -> None:
        """Record a cache miss with the total latency (including the origin call)."""
        self._record(False, latency, key, metadata)

    def record_error(self, operation: str, key: str | None = None) -> None:
        """Count a failed cache operation."""
        config = self.runtime_config.get()
        if not config.metrics_enabled:
            return

        with self._lock:
            self._stats.errors += 1
            if key is not None and config.key_metrics_enabled:
                self._key_stats.setdefault(key, CacheStats()).errors += 1

        if self.metrics_collector is not None:
            self.metrics_collector.record_error(self.cache_name, operation)

    def _record(self, hit: bool, latency: Any, key: str | None, metadata: OperationMetadata | None) -> None:
        latency = self._validate_latency(latency)
        config = self.runtime_config.get()
        if not config.metrics_enabled:
            return

        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            self._apply(self._stats, hit, latency, now, None)
            if key is not None and config.key_metrics_enabled:
                stats = self._key_stats.setdefault(key, CacheStats())
                self._apply(stats, hit, latency, now, metadata)

        if self.metrics_collector is not None:
            if hit:
                self.metrics_collector.record_hit(self.cache_name, latency)
            else:
                self.metrics_collector.record_miss(self.cache_name, latency)

    @staticmethod
    def _apply(
        stats: CacheStats,
        hit: bool,
        latency: float,
        now: str,
        metadata: OperationMetadata | None,
    ) -> None:
        if hit:
            stats.hits += 1
            stats.hit_latency.add(latency)
        else:
            stats.misses += 1
            stats.miss_latency.add(latency)
        stats.latency.add(latency)
        stats.last_access = now
        if metadata is not None:
            stats.last_operation = metadata.to_dict()

    def _validate_latency(self, latency: Any) -> float:
        if isinstance(latency, bool) or not isinstance(latency, (int, float)):
            raise StatisticsError(
                "Latency must be a number",
                details={"cache_name": self.cache_name, "latency": repr(latency)},
            )
        if math.isnan(latency) or math.isinf(latency) or latency < 0:
            raise StatisticsError(
                "Latency must be a finite, non-negative number",
                details={"cache_name": self.cache_name, "latency": latency},
            )
        return float(latency)

    # =========================================================================
    # Reading
    # =========================================================================

    def get_current_stats(self) -> dict[str, Any]:
        """Global aggregates since the last reset."""
        config = self.runtime_config.get()
        with self._lock:
            stats = self._stats.to_dict()
            tracked_keys = len(self._key_stats)
        return {
            "cacheName": self.cache_name,
            **stats,
            "trackedKeys": tracked_keys,
            **config.to_dict(),
        }

    def get_current_key_metrics(self) -> dict[str, dict[str, Any]]:
        """Per-key aggregates for every tracked key."""
        with self._lock:
            return {key: stats.to_dict() for key, stats in self._key_stats.items()}

    def get_key_metrics(self, key: str) -> dict[str, Any] | None:
        """Aggregates for one key, or None when the key is not tracked."""
        with self._lock:
            stats = self._key_stats.get(key)
            return stats.to_dict() if stats is not None else None

    # =========================================================================
    # Resetting
    # =========================================================================

    def reset_current_stats(self) -> None:
        """Start a new global aggregation window; per-key data is kept."""
        with self._lock:
            self._stats = CacheStats()
        log_stage(logger, Stage.STATISTICS, "Current statistics reset", cache_name=self.cache_name)

    def clear_key_metrics(self) -> None:
        with self._lock:
            self._key_stats.clear()
        log_stage(logger, Stage.STATISTICS, "Key metrics cleared", cache_name=self.cache_name)

    def clear_metrics(self) -> None:
        """Drop global and per-key aggregates."""
        with self._lock:
            self._stats = CacheStats()
            self._key_stats.clear()
        log_stage(logger, Stage.STATISTICS, "All metrics cleared", cache_name=self.cache_name)
