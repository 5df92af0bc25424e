"""Client-side retry orchestration around the ``/api/generate`` proxy call."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from config import Settings
from constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_PROXY_URL,
    DEFAULT_RETRY_BACKOFF,
    MESSAGE_EMPTY_PROXY,
    MESSAGE_NO_ATTEMPTS,
)
from models import Err, GenerationResult, Ok
from session import GenerationSession
from utils.retry import retry
from utils.types import PostClient

logger = logging.getLogger(__name__)


class AttemptError(Exception):
    """A single proxy call failed; the orchestrator may retry it."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {}


def error_message(response: httpx.Response) -> str:
    """Return the proxy's ``error`` or ``details`` field, else a status-based message."""
    body = _json_body(response)
    if isinstance(body, dict):
        for key in ("error", "details"):
            value = body.get(key)
            if value:
                return str(value)
    return f"HTTP error! status: {response.status_code}"


class RetryOrchestrator:
    """Call the proxy with bounded retries and pure exponential backoff.

    Attempt ``n`` (zero-based) that fails with attempts remaining is followed by
    a wait of ``backoff * 2**n`` seconds; the final failure returns at once.
    ``sleep`` is injectable so callers and tests control the clock.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        client: PostClient,
        *,
        url: str = DEFAULT_PROXY_URL,
        session: Optional[GenerationSession] = None,
        backoff: float = DEFAULT_RETRY_BACKOFF,
        attempt_timeout: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._url = url
        self.session = session if session is not None else GenerationSession()
        self._backoff = backoff
        self._attempt_timeout = attempt_timeout
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        client: PostClient,
        settings: Settings,
        *,
        session: Optional[GenerationSession] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> "RetryOrchestrator":
        """Build an orchestrator from the client-side settings."""
        return cls(
            client,
            url=settings.proxy_url,
            session=session,
            backoff=settings.retry_backoff,
            attempt_timeout=settings.attempt_timeout,
            sleep=sleep,
        )

    async def generate(
        self, prompt_text: str, max_retries: int = DEFAULT_MAX_RETRIES
    ) -> GenerationResult:
        """Return ``Ok(text)`` from the first successful attempt or ``Err`` after the last."""
        if max_retries <= 0:
            logger.warning("Generation skipped: max_retries=%s", max_retries)
            return Err(MESSAGE_NO_ATTEMPTS)

        self.session.begin()
        try:
            text = await retry(
                self._attempt,
                prompt_text,
                attempts=max_retries,
                backoff=self._backoff,
                sleep=self._sleep,
                retry_on=(AttemptError,),
                on_failure=self._log_failure,
            )
        except AttemptError as exc:
            self.session.fail(exc.message)
            return Err(exc.message)
        except BaseException as exc:
            self.session.fail(str(exc) or exc.__class__.__name__)
            raise
        self.session.succeed()
        return Ok(text)

    async def _attempt(self, prompt_text: str) -> str:
        self.session.record_attempt()
        call = self._client.post(self._url, json={"prompt": prompt_text})
        try:
            if self._attempt_timeout is None:
                response = await call
            else:
                response = await asyncio.wait_for(call, timeout=self._attempt_timeout)
        except asyncio.TimeoutError as exc:
            raise AttemptError(f"attempt timed out after {self._attempt_timeout}s") from exc
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
            raise AttemptError(str(exc) or exc.__class__.__name__) from exc
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected failure calling %s", self._url)
            raise AttemptError(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            raise AttemptError(error_message(response))

        body = _json_body(response)
        text = body.get("text") if isinstance(body, dict) else None
        if not isinstance(text, str) or not text:
            raise AttemptError(MESSAGE_EMPTY_PROXY)
        return text

    @staticmethod
    def _log_failure(attempt: int, exc: BaseException) -> None:
        logger.warning("Attempt %s failed: %s", attempt + 1, exc)


__all__ = ["AttemptError", "RetryOrchestrator", "error_message"]
