"""Retry orchestrator tests against a mocked proxy endpoint."""

import asyncio
import json
from typing import Any, Callable, List, Optional

import httpx
import pytest

from constants import MESSAGE_EMPTY_PROXY, MESSAGE_NO_ATTEMPTS
from models import Err, Ok
from orchestrator import RetryOrchestrator, error_message
from session import GenerationSession, GenerationStatus, SessionBusyError

PROXY_URL = "http://proxy.test/api/generate"


class FakeSleep:  # pylint: disable=too-few-public-methods
    """Record backoff waits instead of sleeping."""

    def __init__(self, session: Optional[GenerationSession] = None) -> None:
        self.delays: List[float] = []
        self.busy_during_wait: List[bool] = []
        self._session = session

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self._session is not None:
            self.busy_during_wait.append(self._session.busy)


class Proxy:  # pylint: disable=too-few-public-methods
    """Scripted proxy: returns queued responses, repeating the last one."""

    def __init__(self, *responses: Callable[[httpx.Request], httpx.Response]) -> None:
        self._responses = list(responses)
        self.prompts: List[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.prompts.append(json.loads(request.content)["prompt"])
        index = min(len(self.prompts), len(self._responses)) - 1
        return self._responses[index](request)

    @property
    def calls(self) -> int:
        return len(self.prompts)


def ok(text: str) -> Callable[[httpx.Request], httpx.Response]:
    return lambda _req: httpx.Response(200, json={"text": text})


def fail(status: int = 500, **body: Any) -> Callable[[httpx.Request], httpx.Response]:
    return lambda _req: httpx.Response(status, json=body)


def _orchestrator(
    proxy: Proxy, sleep: FakeSleep, session: Optional[GenerationSession] = None
) -> RetryOrchestrator:
    client = httpx.AsyncClient(transport=httpx.MockTransport(proxy))
    return RetryOrchestrator(client, url=PROXY_URL, session=session, sleep=sleep)


@pytest.mark.asyncio
@pytest.mark.parametrize("max_retries", [1, 2, 3, 5])
async def test_success_makes_exactly_one_call(max_retries: int) -> None:
    """Stop after the first successful attempt."""
    proxy, sleep = Proxy(ok("done")), FakeSleep()
    result = await _orchestrator(proxy, sleep).generate("topic X", max_retries)

    assert result == Ok("done")
    assert proxy.calls == 1
    assert proxy.prompts == ["topic X"]
    assert sleep.delays == []


@pytest.mark.asyncio
@pytest.mark.parametrize("max_retries", [1, 2, 3, 4, 6])
async def test_persistent_failure_uses_every_attempt(max_retries: int) -> None:
    """Make N calls with 2**attempt waits between them and none after the last."""
    proxy, sleep = Proxy(fail(error="boom")), FakeSleep()
    result = await _orchestrator(proxy, sleep).generate("p", max_retries)

    assert result == Err("boom")
    assert proxy.calls == max_retries
    assert sleep.delays == [float(2**attempt) for attempt in range(max_retries - 1)]


@pytest.mark.asyncio
async def test_default_budget_waits_three_units() -> None:
    """Three failed attempts wait 1 + 2 seconds in total."""
    proxy, sleep = Proxy(fail(error="boom")), FakeSleep()
    result = await _orchestrator(proxy, sleep).generate("p")

    assert result == Err("boom")
    assert proxy.calls == 3
    assert sum(sleep.delays) == 3


@pytest.mark.asyncio
async def test_recovers_after_transient_failures() -> None:
    """Succeed on attempt k after k failures, making k + 1 calls."""
    proxy = Proxy(fail(error="flaky"), fail(error="flaky"), ok("third time"))
    sleep = FakeSleep()
    result = await _orchestrator(proxy, sleep).generate("p", 4)

    assert result == Ok("third time")
    assert proxy.calls == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_backoff_scales_with_base() -> None:
    """Multiply the exponential schedule by the configured base."""
    proxy, sleep = Proxy(fail(error="boom")), FakeSleep()
    client = httpx.AsyncClient(transport=httpx.MockTransport(proxy))
    orchestrator = RetryOrchestrator(client, url=PROXY_URL, backoff=0.5, sleep=sleep)
    await orchestrator.generate("p", 4)
    assert sleep.delays == [0.5, 1.0, 2.0]


@pytest.mark.asyncio
async def test_empty_text_counts_as_failure() -> None:
    """Retry when the proxy answers 200 without text."""
    proxy, sleep = Proxy(ok("")), FakeSleep()
    result = await _orchestrator(proxy, sleep).generate("p", 2)

    assert result == Err(MESSAGE_EMPTY_PROXY)
    assert proxy.calls == 2


@pytest.mark.asyncio
async def test_transport_failure_counts_as_failure() -> None:
    """Retry when the proxy cannot be reached."""

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    sleep = FakeSleep()
    client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
    orchestrator = RetryOrchestrator(client, url=PROXY_URL, sleep=sleep)
    result = await orchestrator.generate("p", 2)

    assert result == Err("connection refused")
    assert sleep.delays == [1.0]


@pytest.mark.asyncio
async def test_redirect_status_counts_as_failure() -> None:
    """Retry when the proxy answers with a non-2xx status outside 4xx/5xx."""
    proxy, sleep = Proxy(lambda _req: httpx.Response(302, text="moved")), FakeSleep()
    result = await _orchestrator(proxy, sleep).generate("p", 2)

    assert result == Err("HTTP error! status: 302")
    assert proxy.calls == 2


@pytest.mark.asyncio
async def test_invalid_url_ends_in_err() -> None:
    """Report an unusable endpoint URL as a failed attempt, never an exception."""
    sleep = FakeSleep()
    session = GenerationSession()
    client = httpx.AsyncClient(transport=httpx.MockTransport(Proxy(ok("never"))))
    orchestrator = RetryOrchestrator(
        client, url="http://exa mple.com/\x00", session=session, sleep=sleep
    )
    result = await orchestrator.generate("p", 2)

    assert isinstance(result, Err)
    assert result.message
    assert sleep.delays == [1.0]
    assert session.status is GenerationStatus.FAILED
    assert not session.busy


@pytest.mark.asyncio
async def test_unexpected_client_failure_ends_in_err() -> None:
    """Convert any failure of the client call into an attempt failure."""

    class BrokenClient:  # pylint: disable=too-few-public-methods
        async def post(self, url: str, *, json: Any = None, params: Any = None) -> Any:
            raise RuntimeError("socket layer exploded")

    sleep = FakeSleep()
    orchestrator = RetryOrchestrator(BrokenClient(), url=PROXY_URL, sleep=sleep)
    result = await orchestrator.generate("p", 2)

    assert result == Err("socket layer exploded")
    assert sleep.delays == [1.0]


@pytest.mark.asyncio
async def test_attempt_timeout_fails_the_attempt() -> None:
    """Fail slow attempts when a per-attempt timeout is configured."""

    async def hang(_request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json={"text": "late"})

    sleep = FakeSleep()
    client = httpx.AsyncClient(transport=httpx.MockTransport(hang))
    orchestrator = RetryOrchestrator(
        client, url=PROXY_URL, attempt_timeout=0.01, sleep=sleep
    )
    result = await orchestrator.generate("p", 1)
    assert result == Err("attempt timed out after 0.01s")


@pytest.mark.asyncio
@pytest.mark.parametrize("max_retries", [0, -1])
async def test_no_attempts_permitted(max_retries: int) -> None:
    """Return an error without calling the proxy when the budget is empty."""
    proxy, sleep = Proxy(ok("never")), FakeSleep()
    session = GenerationSession()
    result = await _orchestrator(proxy, sleep, session).generate("p", max_retries)

    assert result == Err(MESSAGE_NO_ATTEMPTS)
    assert proxy.calls == 0
    assert session.status is GenerationStatus.IDLE
    assert not session.busy


@pytest.mark.asyncio
async def test_session_is_busy_for_the_whole_call() -> None:
    """Hold the busy flag across attempts and waits, and release it at the end."""
    session = GenerationSession()
    seen: List[bool] = []

    def respond(request: httpx.Request) -> httpx.Response:
        seen.append(session.busy)
        if len(seen) < 3:
            return httpx.Response(500, json={"error": "again"})
        return httpx.Response(200, json={"text": "fine"})

    proxy = Proxy(respond)
    sleep = FakeSleep(session)
    result = await _orchestrator(proxy, sleep, session).generate("p")

    assert result == Ok("fine")
    assert seen == [True, True, True]
    assert sleep.busy_during_wait == [True, True]
    assert not session.busy
    assert session.status is GenerationStatus.SUCCEEDED
    assert session.attempts == 3


@pytest.mark.asyncio
async def test_session_released_after_final_failure() -> None:
    """Record the final error and release the busy flag."""
    session = GenerationSession()
    result = await _orchestrator(Proxy(fail(error="boom")), FakeSleep(), session).generate("p")

    assert isinstance(result, Err)
    assert not session.busy
    assert session.status is GenerationStatus.FAILED
    assert session.last_error == "boom"


@pytest.mark.asyncio
async def test_session_released_when_cancelled() -> None:
    """Never leave the session busy when the call is cancelled."""
    session = GenerationSession()

    async def cancel(_delay: float) -> None:
        raise asyncio.CancelledError()

    client = httpx.AsyncClient(transport=httpx.MockTransport(Proxy(fail(error="boom"))))
    orchestrator = RetryOrchestrator(client, url=PROXY_URL, session=session, sleep=cancel)
    with pytest.raises(asyncio.CancelledError):
        await orchestrator.generate("p")
    assert not session.busy
    assert session.status is GenerationStatus.FAILED


def test_session_rejects_overlapping_calls() -> None:
    """Refuse to begin while another generation is in flight."""
    session = GenerationSession()
    session.begin()
    with pytest.raises(SessionBusyError):
        session.begin()


@pytest.mark.parametrize(
    ("response", "expected"),
    [
        (httpx.Response(500, json={"error": "boom", "details": "more"}), "boom"),
        (httpx.Response(500, json={"details": "only details"}), "only details"),
        (httpx.Response(502, text="<html>bad gateway</html>"), "HTTP error! status: 502"),
        (httpx.Response(500, json=["not", "an", "object"]), "HTTP error! status: 500"),
    ],
)
def test_error_message_prefers_error_then_details(response: httpx.Response, expected: str) -> None:
    """Derive the attempt message from the proxy's error body."""
    assert error_message(response) == expected
