"""Request, response and result models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from pydantic import BaseModel, ConfigDict


class GenerateRequest(BaseModel):  # pylint: disable=too-few-public-methods
    """Body of ``POST /api/generate``."""

    model_config = ConfigDict(extra="ignore")
    prompt: str = ""


class GenerateResponse(BaseModel):  # pylint: disable=too-few-public-methods
    """Successful proxy response."""

    text: str


class ErrorResponse(BaseModel):  # pylint: disable=too-few-public-methods
    """Normalized proxy failure."""

    error: str
    details: str


@dataclass(frozen=True)
class Ok:
    """Generated text."""

    text: str
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Err:
    """Failed generation with a human-readable message."""

    message: str
    details: Optional[str] = None
    ok: ClassVar[bool] = False

    def to_response(self) -> ErrorResponse:
        """Return the wire shape, falling back to the message for details."""
        return ErrorResponse(error=self.message, details=self.details or self.message)


GenerationResult = Union[Ok, Err]

__all__ = [
    "Err",
    "ErrorResponse",
    "GenerateRequest",
    "GenerateResponse",
    "GenerationResult",
    "Ok",
]
