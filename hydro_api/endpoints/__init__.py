"""Routers HTTP del dashboard."""

from .chiller import router as chiller_router
from .health import router as health_router
from .logs import router as logs_router
from .status import router as status_router

__all__ = ["chiller_router", "health_router", "logs_router", "status_router"]
