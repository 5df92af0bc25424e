"""FastAPI entry point for the thesis proxy."""

from __future__ import annotations

import asyncio
import importlib
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from client import ClientFactory, create_client
from constants import MESSAGE_UPSTREAM_FAILED, SERVICE_VERSION
from forwarder import ForwardingHandler
from middleware import (
    prometheus_middleware,
    request_id_middleware,
    request_size_limit_middleware,
)
from routes import generate_router, health_router, version_router
import state
from logging_config import logger

try:
    UVLOOP = importlib.import_module("uvloop")
except ModuleNotFoundError:
    UVLOOP = None


def install_uvloop() -> bool:
    """Install uvloop if available for faster event loops."""
    if UVLOOP is not None and not os.getenv("DISABLE_UVLOOP"):
        try:
            UVLOOP.install()
            logger.info("uvloop enabled")
            return True
        except (RuntimeError, ValueError):
            return False
    return False


async def _close_client(client: httpx.AsyncClient) -> None:
    """Gracefully close the client respecting the configured timeout."""
    try:
        timeout = state.settings.http_timeout or 5.0
        await asyncio.wait_for(client.aclose(), timeout=timeout)
    except Exception:  # pylint: disable=broad-exception-caught
        logger.exception("Error closing HTTP client")


@asynccontextmanager
async def lifespan(
    fastapi_app: FastAPI,
    client_factory: Optional[ClientFactory] = None,
) -> AsyncGenerator[None, None]:
    """Create the upstream client and forwarding handler; close the client on shutdown."""
    settings = state.settings
    try:
        client = await create_client(
            client_factory or getattr(fastapi_app.state, "client_factory", None),
            settings=settings,
        )
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("Failed to create HTTP client", exc_info=True)
        raise RuntimeError("Failed to start proxy") from exc

    fastapi_app.state.forwarder = ForwardingHandler(client, settings)
    logger.info("Proxy started", extra={"version": SERVICE_VERSION})
    logger.info(
        "Gemini endpoint: %s",
        settings.generate_url,
        extra={"base_url": settings.gemini_base},
    )
    if not settings.has_credential:
        logger.warning("GEMINI_API_KEY is not set; /api/generate will report a configuration error")
    try:
        yield
    finally:
        await _close_client(client)


def _error_response(error: str, details: str) -> JSONResponse:
    return JSONResponse({"error": error, "details": details}, status_code=500)


async def validation_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Report malformed request bodies with the proxy's failure shape."""
    if isinstance(exc, RequestValidationError):
        return _error_response("invalid request body", str(exc.errors()))
    return _error_response("invalid request body", str(exc))


async def unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Last-resort conversion of unexpected faults into a 500 response."""
    logger.error("Unhandled error", exc_info=exc)
    return _error_response(MESSAGE_UPSTREAM_FAILED, str(exc))


def create_app() -> FastAPI:
    """Factory that builds the FastAPI instance with all routers & middleware."""
    fastapi_app = FastAPI(
        title="Thesis Wizard Gemini Proxy",
        version=SERVICE_VERSION,
        lifespan=lifespan,
    )
    fastapi_app.middleware("http")(request_size_limit_middleware)
    fastapi_app.middleware("http")(request_id_middleware)
    fastapi_app.middleware("http")(prometheus_middleware)

    # Added last so it is outermost and decorates 413/400 replies too.
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=state.settings.allowed_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        allow_credentials=False,
    )

    fastapi_app.include_router(generate_router)
    fastapi_app.include_router(health_router)
    fastapi_app.include_router(version_router)

    fastapi_app.add_exception_handler(RequestValidationError, validation_error_handler)
    fastapi_app.add_exception_handler(Exception, unhandled_error_handler)

    return fastapi_app


app = create_app()


def run(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Start the Uvicorn server for the proxy."""
    try:
        use_uvloop = install_uvloop()
        workers = state.settings.workers or 1
        app_target: Any = app
        if workers > 1:
            app_target = "main:app"
        uvicorn.run(
            app_target,
            host=host or state.settings.host,
            port=port or state.settings.port,
            workers=workers,
            loop="uvloop" if use_uvloop else "asyncio",
        )
    except KeyboardInterrupt:
        pass


__all__ = ["app", "create_app", "lifespan", "run"]


if __name__ == "__main__":
    run()
