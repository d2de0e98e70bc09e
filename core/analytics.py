"""Text analytics for recognition results."""

import math
import re
from typing import Optional

from .models import OCRResult, TextStats

WORDS_PER_MINUTE = 200

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_WHITESPACE = re.compile(r"\s")


def count_words(text: Optional[str]) -> int:
    """Whitespace-delimited word count."""
    return len((text or "").split())


def confidence_label(confidence: float) -> str:
    if confidence >= 90:
        return "Excellent"
    if confidence >= 70:
        return "Good"
    if confidence >= 50:
        return "Fair"
    return "Poor"


def text_stats(
    text: str,
    confidence: float = 0.0,
    processing_time_ms: Optional[float] = None,
) -> TextStats:
    """
    Compute word/sentence/paragraph/character counts and reading time.

    Reading time assumes 200 words per minute, rounded up.
    """
    text = (text or "").strip()
    words = count_words(text)
    sentences = len([s for s in _SENTENCE_SPLIT.split(text) if s.strip()])
    paragraphs = len([p for p in _PARAGRAPH_SPLIT.split(text) if p.strip()])

    return TextStats(
        words=words,
        sentences=sentences,
        paragraphs=paragraphs,
        characters=len(text),
        characters_no_spaces=len(_WHITESPACE.sub("", text)),
        # half-up, not banker's rounding
        avg_words_per_sentence=math.floor(words / sentences + 0.5) if sentences else 0,
        reading_time_minutes=math.ceil(words / WORDS_PER_MINUTE),
        confidence=confidence,
        confidence_label=confidence_label(confidence),
        processing_time_ms=processing_time_ms,
    )


def result_stats(result: OCRResult) -> TextStats:
    return text_stats(result.text, result.confidence, result.processing_time_ms or None)
