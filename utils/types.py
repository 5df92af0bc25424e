"""Shared typing helpers."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

import httpx


class PostClient(Protocol):
    """Protocol for the HTTP clients used by the handler and orchestrator."""

    async def post(
        self,
        url: str,
        *,
        json: Any | None = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        """Perform a POST request."""
