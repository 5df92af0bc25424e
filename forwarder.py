"""Forwarding handler: relays one prompt to Gemini and normalizes the outcome."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from prometheus_client import Counter

from config import Settings
from constants import MESSAGE_EMPTY_UPSTREAM, MESSAGE_MISSING_API_KEY, MESSAGE_UPSTREAM_FAILED
from errors import (
    ConfigurationError,
    EmptyResponseError,
    ProxyError,
    TransportError,
    UpstreamError,
)
from logging_config import request_id_ctx
from models import Err, GenerateRequest, GenerationResult, Ok
from utils.paths import lookup_text
from utils.types import PostClient

logger = logging.getLogger(__name__)

upstream_outcomes = Counter(
    "proxy_upstream_outcomes_total",
    "Forwarding handler outcomes by error code",
    ["outcome"],
)


def build_payload(prompt: str) -> Dict[str, Any]:
    """Return the generateContent body for a single text prompt."""
    return {"contents": [{"parts": [{"text": prompt}]}]}


def extract_text(payload: Any) -> Optional[str]:
    """Return ``candidates[0].content.parts[0].text`` or None when any level is absent."""
    return lookup_text(payload, "candidates", 0, "content", "parts", 0, "text")


class ForwardingHandler:
    """Stateless relay between ``/api/generate`` and the Gemini API.

    The handler makes exactly one upstream call per request and never retries;
    pacing belongs to the client-side orchestrator.
    """

    def __init__(self, client: PostClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    async def handle(self, request: GenerateRequest) -> GenerationResult:
        """Forward ``request.prompt`` upstream and return ``Ok`` or ``Err``."""
        request_id = request_id_ctx.get("-")
        try:
            text = await self._forward(request.prompt)
        except ProxyError as exc:
            logger.error(
                "Generation failed: %s",
                exc.message,
                extra={"code": exc.code, "details": exc.details, "request_id_ctx": request_id},
            )
            upstream_outcomes.labels(outcome=exc.code).inc()
            return Err(exc.message, exc.details)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.exception(
                "Unhandled error while forwarding prompt",
                extra={"request_id_ctx": request_id},
            )
            upstream_outcomes.labels(outcome=ProxyError.code).inc()
            return Err(MESSAGE_UPSTREAM_FAILED, str(exc))
        upstream_outcomes.labels(outcome="ok").inc()
        return Ok(text)

    async def _forward(self, prompt: str) -> str:
        api_key = self._settings.gemini_api_key
        if not api_key:
            raise ConfigurationError(MESSAGE_MISSING_API_KEY)

        url = self._settings.generate_url
        try:
            response = await self._client.post(
                url,
                json=build_payload(prompt),
                params={"key": api_key},
            )
        except httpx.HTTPError as exc:
            raise TransportError("Gemini API request failed", details=str(exc)) from exc

        if not response.is_success:
            raise UpstreamError(
                f"Gemini API returned status {response.status_code}",
                details=response.text or None,
            )

        try:
            payload = response.json()
        except ValueError:
            payload = None
        text = extract_text(payload)
        if text is None:
            raise EmptyResponseError(MESSAGE_EMPTY_UPSTREAM)
        return text


__all__ = ["ForwardingHandler", "build_payload", "extract_text"]
