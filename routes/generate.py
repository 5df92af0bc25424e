"""The proxy endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from deps import get_forwarder
from forwarder import ForwardingHandler
from models import GenerateRequest, GenerateResponse, Ok

router = APIRouter()


@router.post("/api/generate")
async def generate(
    req: GenerateRequest,
    forwarder: ForwardingHandler = Depends(get_forwarder),
) -> JSONResponse:
    """Relay a prompt to Gemini.

    Returns ``{"text"}`` on success and a 500 ``{"error", "details"}`` otherwise.
    """
    result = await forwarder.handle(req)
    if isinstance(result, Ok):
        return JSONResponse(GenerateResponse(text=result.text).model_dump())
    return JSONResponse(result.to_response().model_dump(), status_code=500)
