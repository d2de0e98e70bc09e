"""
OCR Module - Recognition session lifecycle and the public extraction entry point.

RecognitionSession owns exactly one engine instance per call:
acquire -> configure -> recognize -> release. process_image() wires the
caller's settings and progress sink through a session.
"""

import asyncio
import logging
import time
from collections.abc import Mapping
from typing import Optional

from ..errors import RecognitionError
from ..models import OCRSettings, RecognitionOutput
from ..vision.image_processor import decode_image, preprocess_image
from ..vision.ocr import EngineFactory, RecognitionEngine, TesseractEngine
from ..vision.ocr.base import ImageInput, ParameterValue
from ..vision.ocr.progress import (
    RECOGNITION_START,
    EngineStatus,
    ProgressCallback,
    ProgressTracker,
)

logger = logging.getLogger(__name__)


def build_parameters(settings: OCRSettings) -> dict[str, ParameterValue]:
    """Engine parameters for ``settings``; inter-word spacing is always preserved."""
    parameters: dict[str, ParameterValue] = {
        "tessedit_ocr_engine_mode": settings.ocr_engine_mode,
        "tessedit_pageseg_mode": settings.page_seg_mode,
        "preserve_interword_spaces": 1,
    }
    if settings.whitelist:
        parameters["tessedit_char_whitelist"] = settings.whitelist
    if settings.blacklist:
        parameters["tessedit_char_blacklist"] = settings.blacklist
    return parameters


def _coerce_output(raw) -> RecognitionOutput:
    if isinstance(raw, RecognitionOutput):
        return raw
    if isinstance(raw, Mapping):
        return RecognitionOutput(
            text=raw.get("text") or "",
            confidence=raw.get("confidence") or 0.0,
        )
    raise RecognitionError("OCR engine produced no usable output")


def _prepare(image: ImageInput):
    return preprocess_image(decode_image(image))


class RecognitionSession:
    """
    Scoped owner of one OCR engine instance.

    Use as ``async with``: release() runs exactly once for an acquired engine,
    whether configure/recognize succeed or raise.
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        on_status=None,
    ):
        self._engine_factory = engine_factory
        self._on_status = on_status or (lambda _status: None)
        self._engine: Optional[RecognitionEngine] = None

    @property
    def engine(self) -> Optional[RecognitionEngine]:
        return self._engine

    async def __aenter__(self) -> "RecognitionSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release(suppress_errors=exc is not None)

    def _status(self, status: EngineStatus) -> None:
        self._on_status(status)

    async def acquire(self, language: str) -> None:
        if self._engine is not None:
            raise RecognitionError("Recognition session already holds an engine")
        # Stored before load() so a failed load is still released
        self._engine = self._engine_factory()
        await self._engine.load(language, self._status)

    async def configure(self, parameters: dict[str, ParameterValue]) -> None:
        await self._require_engine().set_parameters(parameters)

    async def recognize(self, image: ImageInput) -> RecognitionOutput:
        try:
            raw = await self._require_engine().recognize(image)
        except RecognitionError:
            raise
        except Exception as exc:
            raise RecognitionError(str(exc) or exc.__class__.__name__) from exc
        return _coerce_output(raw)

    async def release(self, suppress_errors: bool = False) -> None:
        """
        Terminate the engine if one is held.

        With ``suppress_errors`` (an earlier error is propagating) a failing
        terminate is logged instead of raised.
        """
        engine, self._engine = self._engine, None
        if engine is None:
            return
        try:
            await engine.terminate()
        except Exception as exc:
            if suppress_errors:
                logger.warning("OCR engine terminate failed during error unwinding: %s", exc)
                return
            raise RecognitionError(f"Failed to release OCR engine: {exc}") from exc

    def _require_engine(self) -> RecognitionEngine:
        if self._engine is None:
            raise RecognitionError("Recognition session has no engine, call acquire() first")
        return self._engine


async def process_image(
    image: ImageInput,
    on_progress: Optional[ProgressCallback] = None,
    settings: Optional[OCRSettings] = None,
    *,
    engine_factory: Optional[EngineFactory] = None,
) -> RecognitionOutput:
    """
    Extract text from an image.

    Args:
        image: data URL, encoded bytes, path, numpy array or PIL image
        on_progress: Optional callable(percent, message), percent never decreases
        settings: Recognition settings (defaults: eng, psm 3, oem 1)
        engine_factory: Builds the engine for this call (default: TesseractEngine)

    Returns:
        RecognitionOutput; text is "" and confidence 0 when the engine omits them

    Raises:
        RecognitionError: If any step of the engine lifecycle fails
    """
    settings = settings or OCRSettings()
    tracker = ProgressTracker(on_progress)
    start_time = time.perf_counter()

    session = RecognitionSession(engine_factory or TesseractEngine, tracker.on_status)
    try:
        async with session:
            await session.acquire(settings.language)

            tracker.emit(RECOGNITION_START, "Configuring OCR parameters...")
            await session.configure(build_parameters(settings))

            if settings.preprocess:
                image = await asyncio.to_thread(_prepare, image)
            output = await session.recognize(image)
    except Exception as exc:
        logger.error("OCR processing failed: %s", exc)
        reason = str(exc) or "Unknown error"
        raise RecognitionError(f"Failed to process image with OCR: {reason}") from exc

    processing_ms = (time.perf_counter() - start_time) * 1000
    tracker.emit(100, f"Processing completed in {processing_ms:.0f}ms")
    logger.info(
        "OCR done: lang=%s chars=%d confidence=%.1f time=%.0fms",
        settings.language,
        len(output.text),
        output.confidence,
        processing_ms,
    )
    return output
