"""
Admin API Dependencies

The caching service lives on ``app.state``; routes receive it through
FastAPI dependency injection:

    @router.get("/stats")
    async def get_stats(service: ServiceDep): ...
"""

from typing import Annotated

from fastapi import Depends, Request

from readthrough.service import CachingService, get_caching_service


def get_service(request: Request) -> CachingService:
    """Caching service from app state, falling back to the global instance."""
    service = getattr(request.app.state, "caching_service", None)
    if service is None:
        service = get_caching_service()
        request.app.state.caching_service = service
    return service


ServiceDep = Annotated[CachingService, Depends(get_service)]
