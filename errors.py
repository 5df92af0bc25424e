"""Error taxonomy for the forwarding handler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from constants import (
    ERROR_CONFIGURATION,
    ERROR_EMPTY_RESPONSE,
    ERROR_INTERNAL,
    ERROR_TRANSPORT,
    ERROR_UPSTREAM,
)


@dataclass(eq=False)
class ProxyError(Exception):
    """Failure observed while forwarding a prompt upstream."""

    message: str
    details: Optional[str] = None

    code: ClassVar[str] = ERROR_INTERNAL

    def __str__(self) -> str:
        return self.message


class ConfigurationError(ProxyError):
    """The upstream credential is not configured."""

    code = ERROR_CONFIGURATION


class TransportError(ProxyError):
    """The upstream provider could not be reached."""

    code = ERROR_TRANSPORT


class UpstreamError(ProxyError):
    """The upstream provider answered with a non-success status."""

    code = ERROR_UPSTREAM


class EmptyResponseError(ProxyError):
    """The upstream provider answered without any extractable text."""

    code = ERROR_EMPTY_RESPONSE


__all__ = [
    "ConfigurationError",
    "EmptyResponseError",
    "ProxyError",
    "TransportError",
    "UpstreamError",
]
