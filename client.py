"""HTTP client factories for the upstream provider and the proxy endpoint."""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from config import Settings
from logging_config import logger, request_id_ctx

ClientFactory = Callable[[], Union[httpx.AsyncClient, Awaitable[httpx.AsyncClient]]]


def default_client_factory(settings: Settings) -> httpx.AsyncClient:
    """Create the shared upstream HTTP client for the app."""
    timeout = httpx.Timeout(settings.http_timeout) if settings.http_timeout is not None else None
    limits = httpx.Limits(
        max_keepalive_connections=settings.max_keepalive_connections or None,
        max_connections=settings.max_connections or None,
    )
    return httpx.AsyncClient(
        timeout=timeout,
        limits=limits,
        verify=settings.verify_ssl,
        http2=True,
    )


def proxy_client_factory(settings: Settings) -> httpx.AsyncClient:
    """Create the client-side HTTP client used to call the proxy endpoint.

    Timeouts are left to the orchestrator's ``attempt_timeout``.
    """
    return httpx.AsyncClient(timeout=None, verify=settings.verify_ssl)


async def create_client(
    factory: Optional[Any],
    *,
    settings: Settings,
) -> httpx.AsyncClient:
    """Build a client from ``factory`` or fall back to ``default_client_factory``.

    ``factory`` may be ``None`` or a callable returning an ``httpx.AsyncClient``,
    including async callables.
    """
    if not callable(factory):
        return default_client_factory(settings)
    result = factory()
    if inspect.isawaitable(result):
        result = await result
    if not isinstance(result, httpx.AsyncClient):
        logger.error(
            "client_factory returned unexpected type",
            extra={"request_id_ctx": request_id_ctx.get("-")},
        )
        raise TypeError("client_factory must return httpx.AsyncClient")
    return result


__all__ = ["ClientFactory", "create_client", "default_client_factory", "proxy_client_factory"]
