"""
Core Data Models for the OCR & Summarization Service.

Defines the standard data structures used across all modules:
- OCRSettings: Recognition parameters supplied by the caller
- RecognitionOutput: Raw result of one recognition call
- OCRResult: History entry with derived values
- ProgressEvent: Normalized progress update
- TextStats: Text analytics for a result
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class OCRSettings(BaseModel):
    """Recognition parameters. Frozen for the duration of one call."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "language": "eng",
                "page_seg_mode": 3,
                "ocr_engine_mode": 1,
                "whitelist": "0123456789",
                "blacklist": None,
                "preprocess": False,
            }
        },
    )

    language: str = Field(default="eng", min_length=1, description="Tesseract language code(s), '+'-joined")
    page_seg_mode: int = Field(default=3, ge=0, le=13, description="Page segmentation mode (--psm)")
    ocr_engine_mode: int = Field(default=1, ge=0, le=3, description="OCR engine mode (--oem)")
    whitelist: Optional[str] = Field(default=None, description="Only recognize these characters")
    blacklist: Optional[str] = Field(default=None, description="Never recognize these characters")
    preprocess: bool = Field(default=False, description="Grayscale + contrast boost before recognition")


class RecognitionOutput(BaseModel):
    """Text and confidence produced by a single recognition call."""

    text: str = Field(default="", description="Recognized text, empty if nothing was found")
    confidence: float = Field(default=0.0, ge=0.0, le=100.0, description="Mean word confidence, 0-100")


class ProgressEvent(BaseModel):
    """Normalized progress update delivered to the caller's sink."""

    progress: int = Field(..., ge=0, le=100)
    message: str


class OCRResult(BaseModel):
    """
    A recognition result kept in the recent-results history.

    Only ``text`` (and the derived ``word_count``/``timestamp``) change after
    creation, when the user edits the text.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "result_id": "550e8400-e29b-41d4-a716-446655440000",
                "text": "Hello World",
                "confidence": 91.5,
                "timestamp": "2024-01-01T12:00:00",
                "language": "eng",
                "word_count": 2,
                "processing_time_ms": 812.4,
                "image_name": "scan.png",
            }
        }
    )

    result_id: UUID = Field(default_factory=uuid4, description="Unique result identifier")
    text: str = Field(default="", description="Recognized (or edited) text")
    confidence: float = Field(default=0.0, description="Engine confidence, 0-100")
    timestamp: datetime = Field(default_factory=datetime.now, description="Creation or last edit time")
    language: Optional[str] = Field(default=None, description="Language used for recognition")
    word_count: int = Field(default=0, ge=0, description="Whitespace-delimited word count")
    processing_time_ms: float = Field(default=0.0, ge=0.0, description="Wall-clock recognition time")
    image_name: Optional[str] = Field(default=None, description="Uploaded file name")


class TextStats(BaseModel):
    """Text analytics for a recognition result."""

    words: int = 0
    sentences: int = 0
    paragraphs: int = 0
    characters: int = 0
    characters_no_spaces: int = 0
    avg_words_per_sentence: int = 0
    reading_time_minutes: int = 0
    confidence: float = 0.0
    confidence_label: str = "Poor"
    processing_time_ms: Optional[float] = None


# Request/Response models for API
class TextUpdateRequest(BaseModel):
    """Request model for editing a result's text."""

    text: str = Field(..., description="Replacement text")
