"""Generation session state shared between the orchestrator and UI collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class GenerationStatus(str, Enum):
    """Lifecycle of a single orchestrated generation."""

    IDLE = "idle"
    GENERATING = "generating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SessionBusyError(RuntimeError):
    """Raised when a generation starts while another is still in flight."""


@dataclass
class GenerationSession:
    """Busy state owned by one UI session.

    ``busy`` is True from the start of an orchestrated call until its terminal
    success or failure; individual retries do not toggle it.
    """

    status: GenerationStatus = GenerationStatus.IDLE
    last_error: Optional[str] = None
    attempts: int = 0

    @property
    def busy(self) -> bool:
        return self.status is GenerationStatus.GENERATING

    def begin(self) -> None:
        if self.busy:
            raise SessionBusyError("a generation is already in progress")
        self.status = GenerationStatus.GENERATING
        self.last_error = None
        self.attempts = 0

    def record_attempt(self) -> None:
        self.attempts += 1

    def succeed(self) -> None:
        self.status = GenerationStatus.SUCCEEDED

    def fail(self, message: str) -> None:
        self.status = GenerationStatus.FAILED
        self.last_error = message


__all__ = ["GenerationSession", "GenerationStatus", "SessionBusyError"]
