"""
Summarization API Route.

Proxies text to the inference API. Keeps a flat ``{"error": ...}`` contract
instead of the app-wide structured error payload.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from core.errors import (
    RequestValidationFailed,
    ServerMisconfigured,
    ServiceError,
)
from core.summarizer import UNKNOWN_ERROR, Summarizer
from ..deps import get_settings, get_summarizer

router = APIRouter(tags=["summarize"])
logger = logging.getLogger(__name__)

TOKEN_MISSING_MESSAGE = "Hugging Face API token is not configured on the server."


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _read_text(request: Request) -> str:
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    text = payload.get("textToSummarize") if isinstance(payload, dict) else None
    if not isinstance(text, str) or not text:
        raise RequestValidationFailed("textToSummarize is required")
    return text


ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route("/summarize", methods=ALL_METHODS)
async def summarize(
    request: Request,
    settings=Depends(get_settings),
    summarizer: Summarizer = Depends(get_summarizer),
):
    """
    Summarize ``textToSummarize``.

    Returns the inference API body unchanged on success
    (``[{"summary_text": ...}]`` in the common case).
    """
    if request.method != "POST":
        return _error(status.HTTP_405_METHOD_NOT_ALLOWED, "Method Not Allowed")

    try:
        text = await _read_text(request)
        if not settings.huggingface_api_token:
            raise ServerMisconfigured(TOKEN_MISSING_MESSAGE)
    except ServiceError as exc:
        return _error(exc.status_code, str(exc))

    try:
        data = await summarizer.summarize(text)
    except Exception as exc:
        logger.warning("Summarization failed: %s", exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or UNKNOWN_ERROR)

    return JSONResponse(status_code=status.HTTP_200_OK, content=data)
