"""Routes module for the thesis proxy."""

from routes.generate import router as generate_router
from routes.health import router as health_router
from routes.version import router as version_router

__all__ = ["generate_router", "health_router", "version_router"]
