"""Configuration for the thesis proxy."""

from __future__ import annotations

from typing import Any, List, Optional

import httpx
from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from constants import (
    DEFAULT_GEMINI_BASE,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PORT,
    DEFAULT_PROXY_URL,
    DEFAULT_RETRY_BACKOFF,
)


def _validate_base_url(value: str, name: str) -> str:
    """Validate that a configured URL has a scheme and host."""
    try:
        url = httpx.URL(value)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        raise ValueError(f"{name} is not a valid URL: {value}") from exc
    if not url.scheme or not url.host:
        raise ValueError(f"{name} must include scheme and host: {value}")
    return value


def _optional_positive_float(value: Any, name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number") from exc
    if parsed == 0:
        return None
    if parsed < 0:
        raise ValueError(f"{name} must be >= 0")
    return parsed


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Most variables are prefixed with ``PROXY_``; for example ``PROXY_GEMINI_MODEL``
    overrides the upstream model. The credential is read from ``GEMINI_API_KEY``
    (or ``PROXY_GEMINI_API_KEY``) and the port from ``PORT`` (or ``PROXY_PORT``).
    A missing credential is not a startup error: it is reported on each request.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="PROXY_",
        frozen=True,
    )

    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "gemini_api_key", "GEMINI_API_KEY", "PROXY_GEMINI_API_KEY"
        ),
    )
    gemini_base: str = DEFAULT_GEMINI_BASE
    gemini_model: str = DEFAULT_GEMINI_MODEL

    http_timeout: Optional[float] = 300.0
    debug: bool = False
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])

    host: str = "0.0.0.0"
    port: int = Field(
        default=DEFAULT_PORT,
        validation_alias=AliasChoices("port", "PORT", "PROXY_PORT"),
    )
    workers: Optional[int] = None

    max_connections: int = 50
    max_keepalive_connections: int = 20
    verify_ssl: bool = True
    max_request_bytes: Optional[int] = None

    # Client-side settings used by the retry orchestrator and the CLI.
    proxy_url: str = DEFAULT_PROXY_URL
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_backoff: float = DEFAULT_RETRY_BACKOFF
    attempt_timeout: Optional[float] = None

    @property
    def has_credential(self) -> bool:
        """Return True when an upstream API key is configured."""
        return bool(self.gemini_api_key)

    @property
    def generate_url(self) -> str:
        """Return the upstream generateContent URL, without the credential."""
        return f"{self.gemini_base.rstrip('/')}/models/{self.gemini_model}:generateContent"

    @field_validator("gemini_api_key", mode="before")
    @classmethod
    def _normalize_api_key(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("gemini_base", mode="before")
    @classmethod
    def _normalize_gemini_base(cls, value: Any) -> str:
        if value is None or value == "":
            return DEFAULT_GEMINI_BASE
        if not isinstance(value, str):
            raise ValueError("GEMINI_BASE must be a string URL")
        return value

    @field_validator("gemini_model", mode="before")
    @classmethod
    def _normalize_gemini_model(cls, value: Any) -> str:
        if value is None or str(value).strip() == "":
            return DEFAULT_GEMINI_MODEL
        return str(value).strip()

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: Any) -> List[str]:
        if value is None or value == "":
            return []
        if isinstance(value, list):
            return [str(origin).strip() for origin in value if str(origin).strip()]
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        raise ValueError("ALLOWED_ORIGINS must be a comma-separated string")

    @field_validator("http_timeout", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> Optional[float]:
        if value is None or value == "":
            return 300.0
        parsed = _optional_positive_float(value, "HTTP_TIMEOUT")
        if parsed is not None and parsed < 0.1:
            raise ValueError("HTTP_TIMEOUT must be >= 0.1 or 0 for no limit")
        return parsed

    @field_validator("attempt_timeout", mode="before")
    @classmethod
    def _validate_attempt_timeout(cls, value: Any) -> Optional[float]:
        return _optional_positive_float(value, "ATTEMPT_TIMEOUT")

    @field_validator("debug", "verify_ssl", mode="before")
    @classmethod
    def _parse_bool(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "y", "on"}
        return False

    @field_validator("host", mode="before")
    @classmethod
    def _normalize_host(cls, value: Any) -> str:
        if value is None or value == "":
            return "0.0.0.0"
        if not isinstance(value, str):
            raise ValueError("HOST must be a string")
        return value

    @field_validator("port", mode="before")
    @classmethod
    def _normalize_port(cls, value: Any) -> int:
        if value is None or value == "":
            return DEFAULT_PORT
        try:
            parsed = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("PORT must be an integer") from exc
        if parsed <= 0:
            raise ValueError("PORT must be > 0")
        return parsed

    @field_validator("workers", "max_request_bytes", mode="before")
    @classmethod
    def _normalize_optional_positive_int(cls, value: Any) -> Optional[int]:
        if value is None or value == "":
            return None
        try:
            parsed = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("WORKERS and MAX_REQUEST_BYTES must be integers") from exc
        if parsed <= 0:
            raise ValueError("WORKERS and MAX_REQUEST_BYTES must be > 0")
        return parsed

    @field_validator("max_connections", "max_keepalive_connections", mode="before")
    @classmethod
    def _normalize_connection_limits(cls, value: Any) -> int:
        if value is None or value == "":
            return 0
        try:
            parsed = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("Connection limits must be integers") from exc
        if parsed < 0:
            raise ValueError("Connection limits must be >= 0")
        return parsed

    @field_validator("max_retries", mode="before")
    @classmethod
    def _normalize_retries(cls, value: Any) -> int:
        if value is None or value == "":
            return DEFAULT_MAX_RETRIES
        try:
            parsed = int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("MAX_RETRIES must be an integer") from exc
        if parsed < 0:
            raise ValueError("MAX_RETRIES must be >= 0")
        return parsed

    @field_validator("retry_backoff", mode="before")
    @classmethod
    def _normalize_backoff(cls, value: Any) -> float:
        if value is None or value == "":
            return DEFAULT_RETRY_BACKOFF
        try:
            parsed = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError("RETRY_BACKOFF must be a number") from exc
        if parsed < 0:
            raise ValueError("RETRY_BACKOFF must be >= 0")
        return parsed

    @model_validator(mode="after")
    def _validate_urls(self) -> "Settings":
        _validate_base_url(self.gemini_base, "PROXY_GEMINI_BASE")
        _validate_base_url(self.proxy_url, "PROXY_PROXY_URL")
        return self
