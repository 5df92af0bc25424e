"""Bounded retry loop with exponential backoff."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

T = TypeVar("T")


class NoAttemptsError(RuntimeError):
    """Raised when a retry loop is given no attempts to make."""


def backoff_delay(attempt: int, backoff: float = 1.0) -> float:
    """Return the wait after failed ``attempt`` (zero-based): ``backoff * 2**attempt``."""
    return backoff * (2**attempt)


async def retry(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    attempts: int,
    backoff: float = 1.0,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    on_failure: Optional[Callable[[int, BaseException], None]] = None,
) -> T:
    """Call ``fn`` up to ``attempts`` times, sleeping between failures.

    The last failure is re-raised unchanged once attempts run out; there is no
    wait after it. Exceptions outside ``retry_on`` propagate immediately.
    """
    if attempts <= 0:
        raise NoAttemptsError("no attempts permitted")
    for attempt in range(attempts):
        try:
            return await fn(*args)
        except retry_on as exc:
            if on_failure is not None:
                on_failure(attempt, exc)
            if attempt >= attempts - 1:
                raise
            await sleep(backoff_delay(attempt, backoff))
    raise NoAttemptsError("no attempts permitted")
