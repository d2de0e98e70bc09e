"""Tesseract OCR engine implementation."""

import asyncio
import functools
import logging
import shlex
from typing import Optional

import pytesseract

from ...errors import RecognitionError
from ...models import RecognitionOutput
from ..image_processor import decode_image, to_pil
from .base import ImageInput, ParameterValue, RecognitionEngine, StatusSink
from .progress import EnginePhase, EngineStatus

logger = logging.getLogger(__name__)

# Parameters Tesseract takes as command-line flags rather than -c variables
_FLAG_PARAMETERS = {
    "tessedit_ocr_engine_mode": "--oem",
    "tessedit_pageseg_mode": "--psm",
}


def build_config(parameters: dict[str, ParameterValue]) -> str:
    """Render engine parameters as a Tesseract config string."""
    parts = []
    for key, value in parameters.items():
        flag = _FLAG_PARAMETERS.get(key)
        if flag:
            parts.append(f"{flag} {int(value)}")
        else:
            parts.append(f"-c {key}={shlex.quote(str(value))}")
    return " ".join(parts)


def mean_confidence(data) -> float:
    """
    Average word confidence from ``image_to_data`` output (0-100 scale).

    Tesseract marks non-word rows with -1; those are skipped.
    """
    if not isinstance(data, dict) or "conf" not in data:
        raise RecognitionError("OCR engine produced no usable output")

    texts = data.get("text") or [""] * len(data["conf"])
    scores = []
    for text, conf in zip(texts, data["conf"]):
        try:
            score = float(conf)
        except (TypeError, ValueError):
            continue
        if score < 0 or not str(text).strip():
            continue
        scores.append(score)
    if not scores:
        return 0.0
    return round(sum(scores) / len(scores), 2)


def configure_tesseract(tesseract_cmd: Optional[str]) -> None:
    """Point pytesseract at a non-default binary. Called once from app config."""
    if tesseract_cmd and pytesseract.pytesseract.tesseract_cmd != tesseract_cmd:
        logger.info("Using tesseract binary: %s", tesseract_cmd)
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd


def _load_pil(image: ImageInput):
    return to_pil(decode_image(image))


class TesseractEngine(RecognitionEngine):
    """
    OCR engine backed by the Tesseract binary (via pytesseract).

    Image decoding and the blocking subprocess calls run in the default
    executor so the event loop stays responsive.
    """

    def __init__(self):
        self.language: Optional[str] = None
        self.parameters: dict[str, ParameterValue] = {}
        self._on_status: Optional[StatusSink] = None
        self._loaded = False

    def _emit(self, phase: EnginePhase, progress: float = 0.0) -> None:
        if self._on_status is not None:
            self._on_status(EngineStatus(phase=phase, progress=progress))

    @staticmethod
    async def _run(func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))

    async def load(self, language: str, on_status: StatusSink) -> None:
        self._on_status = on_status

        self._emit(EnginePhase.LOADING_CORE)
        version = await self._run(pytesseract.get_tesseract_version)
        logger.debug("Tesseract %s found", version)

        self._emit(EnginePhase.LOADING_LANGUAGE)
        available = set(await self._run(pytesseract.get_languages, config=""))
        missing = [code for code in language.split("+") if code and code not in available]
        if missing:
            raise RecognitionError(f"Language data not installed: {', '.join(missing)}")

        self._emit(EnginePhase.INITIALIZING)
        self.language = language
        self._loaded = True
        self._emit(EnginePhase.INITIALIZED)

    async def set_parameters(self, parameters: dict[str, ParameterValue]) -> None:
        self.parameters.update(parameters)

    async def recognize(self, image: ImageInput) -> RecognitionOutput:
        if not self._loaded:
            raise RecognitionError("OCR engine is not loaded")

        pil_image = await self._run(_load_pil, image)
        config = build_config(self.parameters)

        self._emit(EnginePhase.RECOGNIZING, 0.0)
        text = await self._run(
            pytesseract.image_to_string, pil_image, lang=self.language, config=config
        )
        self._emit(EnginePhase.RECOGNIZING, 0.5)
        data = await self._run(
            pytesseract.image_to_data,
            pil_image,
            lang=self.language,
            config=config,
            output_type=pytesseract.Output.DICT,
        )
        confidence = mean_confidence(data)
        self._emit(EnginePhase.RECOGNIZING, 1.0)

        return RecognitionOutput(text=(text or "").strip(), confidence=confidence)

    async def terminate(self) -> None:
        self._loaded = False
        self._on_status = None
        self.parameters.clear()


class MockRecognitionEngine(RecognitionEngine):
    """Mock OCR for environments without Tesseract."""

    MOCK_TEXT = "Hello World"

    def __init__(self, text: Optional[str] = MOCK_TEXT, confidence: Optional[float] = 95.0):
        self.text = text
        self.confidence = confidence
        self.language: Optional[str] = None
        self.parameters: dict[str, ParameterValue] = {}
        self.terminate_calls = 0
        self._on_status: Optional[StatusSink] = None

    async def load(self, language: str, on_status: StatusSink) -> None:
        self._on_status = on_status
        for phase in (
            EnginePhase.LOADING_CORE,
            EnginePhase.LOADING_LANGUAGE,
            EnginePhase.INITIALIZING,
            EnginePhase.INITIALIZED,
        ):
            on_status(EngineStatus(phase=phase))
        self.language = language

    async def set_parameters(self, parameters: dict[str, ParameterValue]) -> None:
        self.parameters.update(parameters)

    async def recognize(self, image: ImageInput) -> dict:
        for fraction in (0.0, 0.5, 1.0):
            if self._on_status is not None:
                self._on_status(EngineStatus(EnginePhase.RECOGNIZING, fraction))
        # Raw shape, like engines that may omit fields
        return {"text": self.text, "confidence": self.confidence}

    async def terminate(self) -> None:
        self.terminate_calls += 1
