"""Processing modules: OCR session lifecycle and extraction entry point."""

from .ocr import RecognitionSession, build_parameters, process_image

__all__ = [
    "RecognitionSession",
    "build_parameters",
    "process_image",
]
