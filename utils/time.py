"""Time helpers for the proxy."""

from __future__ import annotations

import datetime as _dt


def now() -> str:
    """Return current UTC time in ISO format."""
    return _dt.datetime.now(_dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
