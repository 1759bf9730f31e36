"""
Admin API

FastAPI router and application factory exposing cache statistics, runtime
configuration and invalidation endpoints.
"""

from readthrough.api.app import create_app
from readthrough.api.routes import router

__all__ = ["create_app", "router"]
