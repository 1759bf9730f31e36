"""
FastAPI Application

Admin application for a read-through cache. Wires the caching service into
the application lifespan and mounts the /cache admin router.

Run:
    uvicorn readthrough.api.app:create_app --factory
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from readthrough.api.routes import router as cache_router
from readthrough.core.config.constants import HEADER_CORRELATION_ID, Stage
from readthrough.core.config.settings import get_settings
from readthrough.core.exceptions import CacheConnectionError, ConfigurationError, ReadThroughBaseError
from readthrough.core.logging.logger import (
    clear_correlation_id,
    get_logger,
    log_stage,
    set_correlation_id,
    setup_logging,
)
from readthrough.service import CachingService, get_caching_service

logger = get_logger(__name__)


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).
    """
    settings = get_settings()
    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    service: CachingService = getattr(app.state, "caching_service", None) or get_caching_service()
    app.state.caching_service = service

    log_stage(
        logger,
        Stage.INITIALIZATION,
        "Starting read-through cache admin API",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    await service.initialize()
    try:
        yield
    finally:
        await service.dispose()
        log_stage(logger, Stage.INITIALIZATION, "Application shutdown complete")


# ============================================================================
# Application Factory
# ============================================================================


def create_app(service: CachingService | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        service: Caching service to expose; the global one when omitted

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Admin API of the read-through caching layer",
        lifespan=lifespan,
    )
    if service is not None:
        app.state.caching_service = service

    app.include_router(cache_router)

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        """Inject a correlation ID into every request for log correlation."""
        correlation_id = request.headers.get(HEADER_CORRELATION_ID) or str(uuid.uuid4())
        set_correlation_id(correlation_id)
        try:
            response = await call_next(request)
            response.headers[HEADER_CORRELATION_ID] = correlation_id
            return response
        finally:
            clear_correlation_id()

    @app.exception_handler(ReadThroughBaseError)
    async def readthrough_exception_handler(request: Request, exc: ReadThroughBaseError):
        """Map caching errors onto JSON error responses."""
        if isinstance(exc, CacheConnectionError):
            status_code = 503
        elif isinstance(exc, ConfigurationError):
            status_code = 400
        else:
            status_code = 500

        log_stage(
            logger,
            Stage.API,
            f"Request failed: {exc.message}",
            level="error",
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return JSONResponse(status_code=status_code, content=exc.to_dict())

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "cache": "/cache/stats",
        }

    return app
