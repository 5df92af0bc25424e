"""Version endpoint."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from constants import SERVICE_VERSION

router = APIRouter()


@router.get("/version")
def version() -> JSONResponse:
    """Return the service's semantic version payload."""
    return JSONResponse({"version": SERVICE_VERSION})
