"""
Cache Admin Routes

Operational endpoints for a read-through cache:

    GET    /cache/stats                 current global statistics
    GET    /cache/stats/keys            per-key statistics
    GET    /cache/config                runtime statistics toggles
    PUT    /cache/config                flip the toggles
    GET    /cache/keys/{key}/metadata   tags and creation time of an entry
    DELETE /cache/keys/{key}            delete one entry
    POST   /cache/invalidate            delete every entry carrying a tag
    POST   /cache/clear                 clear the store and its statistics
    GET    /cache/metrics               Prometheus text format
    GET    /cache/health                backend store health

In production these endpoints belong on an internal port behind
authentication.
"""

from fastapi import APIRouter, HTTPException, Response, status
from fastapi.responses import JSONResponse

from readthrough.api.dependencies import ServiceDep
from readthrough.api.models import (
    CacheStatsResponse,
    ClearResponse,
    DeleteKeyResponse,
    EntryMetadataResponse,
    InvalidateRequest,
    InvalidateResponse,
    KeyMetrics,
    KeyStatsResponse,
    RuntimeConfigResponse,
    RuntimeConfigUpdate,
)
from readthrough.core.config.constants import Stage
from readthrough.core.logging.logger import get_logger, log_stage
from readthrough.infrastructure.monitoring.metrics_collector import get_metrics_collector

logger = get_logger(__name__)

router = APIRouter(prefix="/cache", tags=["Cache"])


# ============================================================================
# STATISTICS ENDPOINTS
# ============================================================================


@router.get("/stats", response_model=CacheStatsResponse)
async def get_stats(service: ServiceDep):
    """Current global hit/miss/latency statistics."""
    return CacheStatsResponse.model_validate(service.get_current_metrics())


@router.get("/stats/keys", response_model=KeyStatsResponse)
async def get_key_stats(service: ServiceDep):
    """Statistics of every tracked key (requires key metrics to be enabled)."""
    keys = {
        key: KeyMetrics.model_validate(stats)
        for key, stats in service.get_current_key_metrics().items()
    }
    return KeyStatsResponse(keys=keys)


# ============================================================================
# RUNTIME CONFIGURATION ENDPOINTS
# ============================================================================


@router.get("/config", response_model=RuntimeConfigResponse)
async def get_config(service: ServiceDep):
    return RuntimeConfigResponse.model_validate(service.get_runtime_configuration())


@router.put("/config", response_model=RuntimeConfigResponse)
async def update_config(update: RuntimeConfigUpdate, service: ServiceDep):
    """
    Toggle statistics collection at runtime.

    Takes effect for the next read-through call; nothing is persisted.
    """
    if update.metrics_enabled is not None:
        service.set_metrics_enabled(update.metrics_enabled)
    if update.key_metrics_enabled is not None:
        service.set_key_metrics_enabled(update.key_metrics_enabled)

    log_stage(logger, Stage.API, "Runtime configuration updated via API", **service.get_runtime_configuration())
    return RuntimeConfigResponse.model_validate(service.get_runtime_configuration())


# ============================================================================
# ENTRY ENDPOINTS
# ============================================================================


@router.get("/keys/{key:path}/metadata", response_model=EntryMetadataResponse)
async def get_entry_metadata(key: str, service: ServiceDep):
    metadata = await service.metadata(key)
    if metadata is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No cache entry for key '{key}'")
    return EntryMetadataResponse.model_validate(metadata)


@router.delete("/keys/{key:path}", response_model=DeleteKeyResponse)
async def delete_entry(key: str, service: ServiceDep):
    deleted = await service.delete(key)
    log_stage(logger, Stage.API, "Cache entry deleted via API", key=key, deleted=deleted)
    return DeleteKeyResponse(key=key, deleted=deleted)


@router.post("/invalidate", response_model=InvalidateResponse)
async def invalidate_by_tag(request: InvalidateRequest, service: ServiceDep):
    """Delete every entry tagged with ``request.tag``."""
    deleted = await service.delete_by_tag(request.tag)
    return InvalidateResponse(tag=request.tag, deleted=deleted)


@router.post("/clear", response_model=ClearResponse)
async def clear_cache(service: ServiceDep):
    await service.clear()
    log_stage(logger, Stage.API, "Cache cleared via API", cache_name=service.name)
    return ClearResponse(cleared=True)


# ============================================================================
# METRICS ENDPOINTS
# ============================================================================


@router.get("/metrics")
async def get_prometheus_metrics():
    """
    Expose metrics in Prometheus text format for scraping.

    Format:
        # HELP readthrough_cache_hits_total Total read-through cache hits
        # TYPE readthrough_cache_hits_total counter
        readthrough_cache_hits_total{cache="caching"} 42.0
    """
    metrics = get_metrics_collector()
    return Response(content=metrics.get_prometheus_metrics(), media_type=metrics.get_content_type())


# ============================================================================
# HEALTH ENDPOINTS
# ============================================================================


@router.get("/health")
async def store_health(service: ServiceDep):
    """Backend store health; 503 when the store is unreachable."""
    health = await service.health_check()
    status_code = status.HTTP_200_OK if health.get("status") == "healthy" else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=status_code, content={"cacheName": service.name, **health})
