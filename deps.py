"""Shared FastAPI dependencies."""

from __future__ import annotations

from typing import cast

from fastapi import Request

from forwarder import ForwardingHandler


def get_forwarder(request: Request) -> ForwardingHandler:
    """Return the forwarding handler built at startup."""
    return cast(ForwardingHandler, request.app.state.forwarder)
