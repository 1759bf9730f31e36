"""
Admin API Models

Pydantic request/response models for the cache admin endpoints.

Field names are snake_case in Python and camelCase on the wire (alias
generator), matching the dictionaries produced by the StatisticsRecorder and
RuntimeConfigurationManager.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase and accepting either form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LatencySummary(CamelModel):
    """Latency aggregate in milliseconds."""

    avg: float = Field(default=0.0, ge=0, description="Average latency (ms)")
    min: float = Field(default=0.0, ge=0, description="Minimum latency (ms)")
    max: float = Field(default=0.0, ge=0, description="Maximum latency (ms)")


class KeyMetrics(CamelModel):
    """Aggregates for one scope (the cache or a single key)."""

    requests: int = Field(default=0, ge=0)
    hits: int = Field(default=0, ge=0)
    misses: int = Field(default=0, ge=0)
    errors: int = Field(default=0, ge=0)
    hit_ratio: float = Field(default=0.0, ge=0, le=1)
    miss_ratio: float = Field(default=0.0, ge=0, le=1)
    latency: LatencySummary = Field(default_factory=LatencySummary)
    hit_latency: LatencySummary = Field(default_factory=LatencySummary)
    miss_latency: LatencySummary = Field(default_factory=LatencySummary)
    since: str | None = None
    last_access: str | None = None
    last_operation: dict[str, Any] | None = Field(default=None, description="Metadata of the last read-through")


class CacheStatsResponse(KeyMetrics):
    """Current global statistics of a cache."""

    cache_name: str
    tracked_keys: int = Field(default=0, ge=0)
    metrics_enabled: bool
    key_metrics_enabled: bool


class KeyStatsResponse(CamelModel):
    keys: dict[str, KeyMetrics] = Field(default_factory=dict)


class RuntimeConfigResponse(CamelModel):
    cache_name: str
    metrics_enabled: bool
    key_metrics_enabled: bool


class RuntimeConfigUpdate(CamelModel):
    """Partial update; omitted flags stay unchanged."""

    metrics_enabled: bool | None = None
    key_metrics_enabled: bool | None = None


class EntryMetadataResponse(CamelModel):
    key: str
    tags: list[str] = Field(default_factory=list)
    timestamp: float = Field(description="Creation time (epoch ms)")


class DeleteKeyResponse(CamelModel):
    key: str
    deleted: bool


class InvalidateRequest(CamelModel):
    tag: str = Field(min_length=1, description="Tag whose entries are deleted")


class InvalidateResponse(CamelModel):
    tag: str
    deleted: int = Field(ge=0, description="Number of deleted entries")


class ClearResponse(CamelModel):
    cleared: bool = True
