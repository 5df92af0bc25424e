"""Tests for the FastAPI app factory."""

import pytest
from starlette.routing import Route

from main import create_app


@pytest.mark.asyncio
async def test_create_app_has_routers() -> None:
    """Ensure factory includes the expected routers."""
    app = create_app()
    route_paths = {route.path for route in app.routes if isinstance(route, Route)}
    assert "/api/generate" in route_paths
    assert "/health" in route_paths
    assert "/ready" in route_paths
    assert "/metrics" in route_paths
    assert "/version" in route_paths
