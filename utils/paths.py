"""Total lookups into nested JSON payloads."""

from __future__ import annotations

from typing import Any, Optional, Union

PathKey = Union[str, int]


class _Missing:  # pylint: disable=too-few-public-methods
    """Sentinel for an absent path level."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def lookup(payload: Any, *path: PathKey) -> Any:
    """Follow ``path`` through dicts and lists, returning ``MISSING`` on any gap.

    String keys only match dicts and integer keys only match lists, so a wrong
    shape at any level reads as absent instead of raising.
    """
    current = payload
    for key in path:
        if isinstance(key, int) and not isinstance(key, bool):
            if not isinstance(current, list) or not -len(current) <= key < len(current):
                return MISSING
            current = current[key]
        elif isinstance(current, dict) and key in current:
            current = current[key]
        else:
            return MISSING
    return current


def lookup_text(payload: Any, *path: PathKey) -> Optional[str]:
    """Return a non-empty string at ``path`` or None."""
    value = lookup(payload, *path)
    if isinstance(value, str) and value:
        return value
    return None


__all__ = ["MISSING", "lookup", "lookup_text"]
