"""OCR subpackage exposing engines and progress utilities."""

from .base import EngineFactory, RecognitionEngine
from .progress import EnginePhase, EngineStatus, ProgressTracker, map_status
from .tesseract_engine import (
    MockRecognitionEngine,
    TesseractEngine,
    build_config,
    configure_tesseract,
)

__all__ = [
    "RecognitionEngine",
    "EngineFactory",
    "TesseractEngine",
    "MockRecognitionEngine",
    "build_config",
    "configure_tesseract",
    "EnginePhase",
    "EngineStatus",
    "ProgressTracker",
    "map_status",
]
