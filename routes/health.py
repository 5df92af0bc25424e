"""Health, readiness and metrics endpoints."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from constants import ERROR_CONFIGURATION, MESSAGE_MISSING_API_KEY, SERVICE_VERSION
import state
from utils.time import now

router = APIRouter()


@router.get("/health")
async def health() -> JSONResponse:
    """Return liveness status and timestamp."""
    return JSONResponse({"status": "ok", "service": "thesis-proxy", "timestamp": now()})


@router.get("/ping")
async def ping() -> JSONResponse:
    """Return a basic liveness response."""
    return JSONResponse({"status": "ok"})


@router.get("/ready")
async def ready() -> JSONResponse:
    """Report whether the upstream credential is configured, without calling upstream."""
    if not state.settings.has_credential:
        return JSONResponse(
            {"error": ERROR_CONFIGURATION, "detail": MESSAGE_MISSING_API_KEY},
            503,
        )
    return JSONResponse(
        {
            "status": "ok",
            "upstream": "gemini",
            "model": state.settings.gemini_model,
            "version": SERVICE_VERSION,
            "timestamp": now(),
        }
    )


@router.get("/metrics")
async def metrics() -> Response:
    """Return Prometheus metrics."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
