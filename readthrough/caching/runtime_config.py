"""
Runtime Configuration Manager

Holds the statistics toggles as an immutable ``StatisticsConfig`` snapshot.
Toggling replaces the snapshot as a whole, so a reader that grabbed the
snapshot once sees one consistent pair of flags for the entire call.

The flags start from settings (CACHE_METRICS_ENABLED,
CACHE_KEY_METRICS_ENABLED) and live in memory only.
"""

import threading
from dataclasses import dataclass, replace
from typing import Any

from readthrough.core.config.constants import Stage
from readthrough.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


@dataclass(frozen=True)
class StatisticsConfig:
    """Snapshot of the statistics toggles."""

    metrics_enabled: bool = False
    key_metrics_enabled: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "metricsEnabled": self.metrics_enabled,
            "keyMetricsEnabled": self.key_metrics_enabled,
        }


class RuntimeConfigurationManager:
    """
    Owner of the current StatisticsConfig.

    Usage:
        runtime = RuntimeConfigurationManager(cache_name="caching")
        runtime.set_metrics_enabled(True)
        config = runtime.get()      # read once per call
    """

    def __init__(self, cache_name: str = "caching", initial: StatisticsConfig | None = None):
        self.cache_name = cache_name
        self._config = initial or StatisticsConfig()
        self._lock = threading.Lock()

    def get(self) -> StatisticsConfig:
        """Return the current snapshot."""
        return self._config

    def set_metrics_enabled(self, enabled: bool) -> StatisticsConfig:
        return self._update(metrics_enabled=bool(enabled))

    def set_key_metrics_enabled(self, enabled: bool) -> StatisticsConfig:
        return self._update(key_metrics_enabled=bool(enabled))

    def to_dict(self) -> dict[str, Any]:
        return {"cacheName": self.cache_name, **self._config.to_dict()}

    def _update(self, **changes: bool) -> StatisticsConfig:
        with self._lock:
            self._config = replace(self._config, **changes)
            config = self._config

        log_stage(
            logger,
            Stage.STATISTICS,
            "Runtime statistics configuration updated",
            cache_name=self.cache_name,
            metrics_enabled=config.metrics_enabled,
            key_metrics_enabled=config.key_metrics_enabled,
        )
        return config
