"""Vision processing: image decoding/preprocessing and OCR engines."""

from .image_processor import decode_image, preprocess_image, to_pil
from .ocr import (
    EnginePhase,
    EngineStatus,
    MockRecognitionEngine,
    RecognitionEngine,
    TesseractEngine,
)

__all__ = [
    "decode_image",
    "preprocess_image",
    "to_pil",
    "RecognitionEngine",
    "TesseractEngine",
    "MockRecognitionEngine",
    "EnginePhase",
    "EngineStatus",
]
