"""
Summarizer - Hugging Face inference proxy with a single cold-start retry.

The inference API answers either with the summary payload or with
``{"error": ..., "estimated_time": ...}``. Each response is classified once
into SummarySuccess / ColdStart / UpstreamFailure; a cold start is waited
out and retried exactly once.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from .errors import UpstreamError
from .logging_config import get_log_level, setup_module_logger

logger = setup_module_logger(
    __name__,
    "summarizer/summarizer.log",
    level=get_log_level("SUMMARIZER_LOG_LEVEL", logging.INFO),
    console_env="SUMMARIZER_LOG_TO_STDOUT",
)

DEFAULT_API_URL = "https://api-inference.huggingface.co/models/facebook/bart-large-cnn"
LOADING_MARKER = "is currently loading"
DEFAULT_WARMUP_SECONDS = 20.0
UNKNOWN_ERROR = "An unknown error occurred"


@dataclass(frozen=True)
class SummarySuccess:
    payload: Any


@dataclass(frozen=True)
class ColdStart:
    estimated_seconds: float
    message: str


@dataclass(frozen=True)
class UpstreamFailure:
    message: str


InferenceOutcome = Union[SummarySuccess, ColdStart, UpstreamFailure]


def _coerce_seconds(value) -> float:
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return DEFAULT_WARMUP_SECONDS
    return seconds if seconds > 0 else DEFAULT_WARMUP_SECONDS


def classify_inference_response(data: Any) -> InferenceOutcome:
    """Decide once what an inference API body means."""
    if isinstance(data, dict) and data.get("error"):
        message = str(data["error"])
        if LOADING_MARKER in message:
            return ColdStart(
                estimated_seconds=_coerce_seconds(data.get("estimated_time")),
                message=message,
            )
        return UpstreamFailure(message)
    return SummarySuccess(data)


class HuggingFaceClient:
    """Thin async client for one inference model endpoint."""

    def __init__(
        self,
        token: Optional[str],
        api_url: str = DEFAULT_API_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    async def query(self, inputs: str) -> Any:
        """POST ``{"inputs": ...}`` and return the decoded JSON body."""
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}",
        }
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.api_url, json={"inputs": inputs}, headers=headers)
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"Inference API returned a non-JSON response (HTTP {response.status_code})"
            ) from exc


class Summarizer:
    """
    Summarize text through the inference API.

    Args:
        client: HuggingFaceClient (or anything with ``async query(inputs)``)
        max_warmup_seconds: Upper bound on the cold-start wait, None for no cap
        sleep: Awaitable sleep, injectable for tests
    """

    def __init__(
        self,
        client: HuggingFaceClient,
        max_warmup_seconds: Optional[float] = 120.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.max_warmup_seconds = max_warmup_seconds
        self._sleep = sleep

    def warmup_delay(self, estimated_seconds: float) -> float:
        if self.max_warmup_seconds is None:
            return estimated_seconds
        return min(estimated_seconds, self.max_warmup_seconds)

    async def _attempt(self, text: str) -> InferenceOutcome:
        try:
            data = await self.client.query(text)
        except UpstreamError:
            raise
        except Exception as exc:
            raise UpstreamError(str(exc) or UNKNOWN_ERROR) from exc
        return classify_inference_response(data)

    async def summarize(self, text: str) -> Any:
        """
        Return the inference API payload for ``text``.

        Raises:
            UpstreamError: On any upstream error, including a second cold start
        """
        outcome = await self._attempt(text)

        if isinstance(outcome, ColdStart):
            delay = self.warmup_delay(outcome.estimated_seconds)
            logger.info(
                "Model cold start (estimated %.1fs), retrying once after %.1fs",
                outcome.estimated_seconds,
                delay,
            )
            await self._sleep(delay)
            retry = await self._attempt(text)
            if isinstance(retry, SummarySuccess):
                return retry.payload
            raise UpstreamError(
                f"Model still loading or another error occurred: {retry.message}"
            )

        if isinstance(outcome, UpstreamFailure):
            logger.warning("Inference API error: %s", outcome.message)
            raise UpstreamError(outcome.message)

        return outcome.payload
