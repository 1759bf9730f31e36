"""
Metrics Collector with Prometheus Integration

Exports read-through statistics as Prometheus metrics:
- Cache hits/misses per cache name
- Read-through latency histogram (hit vs. miss)
- Failed cache operations per operation name

Architectural Decision: prometheus-client for industry-standard metrics
- Compatible with Grafana dashboards
- Histogram buckets for latency percentiles

The StatisticsRecorder forwards every recorded sample here when metrics are
enabled; the admin API serves ``get_prometheus_metrics()`` at /cache/metrics.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    Info,
    generate_latest,
)

from readthrough.core.config.constants import Stage
from readthrough.core.config.settings import get_settings
from readthrough.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

CACHE_HITS = Counter(
    'readthrough_cache_hits_total',
    'Total read-through cache hits',
    ['cache']
)

CACHE_MISSES = Counter(
    'readthrough_cache_misses_total',
    'Total read-through cache misses',
    ['cache']
)

CACHE_ERRORS = Counter(
    'readthrough_cache_errors_total',
    'Total failed cache operations',
    ['cache', 'operation']
)

READ_THROUGH_LATENCY = Histogram(
    'readthrough_latency_seconds',
    'Read-through latency in seconds',
    ['cache', 'result'],  # hit or miss
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)

APP_INFO = Info(
    'readthrough_app',
    'Application information'
)


class MetricsCollector:
    """
    Centralized metrics collector.

    STAGE-M: Metrics collection

    Latencies arrive in milliseconds and are observed in seconds, the
    Prometheus base unit.

    Usage:
        metrics = get_metrics_collector()
        metrics.record_hit("caching", 0.4)
        output = metrics.get_prometheus_metrics()
    """

    def __init__(self):
        """Initialize metrics collector."""
        self.settings = get_settings()

        APP_INFO.info({
            'version': self.settings.app.APP_VERSION,
            'environment': self.settings.app.ENVIRONMENT,
            'app_name': self.settings.app.APP_NAME
        })

        log_stage(logger, Stage.METRICS, "Metrics collector initialized")

    def record_hit(self, cache: str, latency_ms: float) -> None:
        """Record cache hit."""
        CACHE_HITS.labels(cache=cache).inc()
        READ_THROUGH_LATENCY.labels(cache=cache, result="hit").observe(latency_ms / 1000)

    def record_miss(self, cache: str, latency_ms: float) -> None:
        """Record cache miss."""
        CACHE_MISSES.labels(cache=cache).inc()
        READ_THROUGH_LATENCY.labels(cache=cache, result="miss").observe(latency_ms / 1000)

    def record_error(self, cache: str, operation: str) -> None:
        """Record failed cache operation."""
        CACHE_ERRORS.labels(cache=cache, operation=operation).inc()

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """
        Get Prometheus metrics output.

        Returns:
            bytes: Prometheus text format metrics
        """
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        """Get Prometheus content type."""
        return CONTENT_TYPE_LATEST


# Global metrics collector
_metrics: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
