"""Shared constants for the thesis proxy."""

DEFAULT_GEMINI_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash-preview-09-2025"
DEFAULT_PROXY_URL = "http://localhost:3000/api/generate"
DEFAULT_PORT = 3000
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BACKOFF = 1.0
SERVICE_VERSION = "1.0.0"

ERROR_CONFIGURATION = "configuration_error"
ERROR_TRANSPORT = "transport_error"
ERROR_UPSTREAM = "upstream_error"
ERROR_EMPTY_RESPONSE = "empty_response"
ERROR_INTERNAL = "internal_error"

MESSAGE_MISSING_API_KEY = "API key not found - configure GEMINI_API_KEY and retry"
MESSAGE_EMPTY_UPSTREAM = "AI response invalid or empty"
MESSAGE_EMPTY_PROXY = "invalid or empty AI response."
MESSAGE_UPSTREAM_FAILED = "Failed to reach the Gemini API"
MESSAGE_NO_ATTEMPTS = "no attempts permitted"
