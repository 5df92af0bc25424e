"""Request middleware for request IDs, size limits, and metrics."""

from __future__ import annotations

from typing import Awaitable, Callable
from uuid import uuid4

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import Counter, Histogram

from logging_config import request_id_ctx
import state

request_count = Counter(
    "proxy_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
request_latency = Histogram(
    "proxy_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "path"],
)

KNOWN_PATHS = {"/api/generate", "/health", "/ping", "/ready", "/metrics", "/version"}


def _scrub_path(path: str) -> str:
    if path in KNOWN_PATHS:
        return path
    return "/other"


def _too_large(limit: int) -> JSONResponse:
    return JSONResponse(
        {"error": "payload_too_large", "details": f"payload exceeds {limit} bytes"},
        413,
    )


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Attach a request ID header to each request/response pair."""
    request_id = request.headers.get("X-Request-Id") or str(uuid4())
    token = request_id_ctx.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_ctx.reset(token)
    response.headers["X-Request-Id"] = request_id
    return response


async def request_size_limit_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Reject requests that exceed the configured max size.

    Chunked requests without a Content-Length header are read to enforce the limit.
    """
    limit = state.settings.max_request_bytes
    if limit:
        size_header = request.headers.get("Content-Length")
        if size_header:
            try:
                size = int(size_header)
            except ValueError:
                return JSONResponse(
                    {"error": "invalid_request", "details": "invalid Content-Length"},
                    400,
                )
            if size > limit:
                return _too_large(limit)
        else:
            body = await request.body()
            if len(body) > limit:
                return _too_large(limit)
    return await call_next(request)


async def prometheus_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Collect request count and latency per method and path."""
    method = request.method
    path = _scrub_path(request.url.path)
    with request_latency.labels(method=method, path=path).time():
        response = await call_next(request)
    request_count.labels(method=method, path=path, status=response.status_code).inc()
    return response
