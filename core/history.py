"""
Recent results - bounded in-memory history of OCR results.

Nothing is persisted; the oldest result is evicted once the limit is hit.
"""

import threading
from collections import OrderedDict
from datetime import datetime
from typing import Optional
from uuid import UUID

from .analytics import count_words
from .models import OCRResult, OCRSettings, RecognitionOutput

DEFAULT_MAX_RESULTS = 10


def build_result(
    output: RecognitionOutput,
    settings: OCRSettings,
    processing_time_ms: float,
    image_name: Optional[str] = None,
) -> OCRResult:
    """Derive a history entry (id, word count, timing) from a recognition output."""
    return OCRResult(
        text=output.text,
        confidence=output.confidence,
        language=settings.language,
        word_count=count_words(output.text),
        processing_time_ms=round(processing_time_ms, 2),
        image_name=image_name,
    )


class ResultHistory:
    """Newest-first store of at most ``max_results`` OCR results."""

    def __init__(self, max_results: int = DEFAULT_MAX_RESULTS):
        self.max_results = max(1, int(max_results))
        self._results: "OrderedDict[UUID, OCRResult]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._results)

    def add(self, result: OCRResult) -> OCRResult:
        with self._lock:
            self._results[result.result_id] = result
            self._results.move_to_end(result.result_id, last=False)
            while len(self._results) > self.max_results:
                self._results.popitem(last=True)
        return result

    def get(self, result_id: UUID) -> Optional[OCRResult]:
        return self._results.get(result_id)

    def list(self) -> list[OCRResult]:
        with self._lock:
            return list(self._results.values())

    def update_text(self, result_id: UUID, text: str) -> Optional[OCRResult]:
        """Replace a result's text, refreshing its timestamp and word count."""
        with self._lock:
            current = self._results.get(result_id)
            if current is None:
                return None
            updated = current.model_copy(
                update={
                    "text": text,
                    "word_count": count_words(text),
                    "timestamp": datetime.now(),
                }
            )
            self._results[result_id] = updated
            return updated

    def clear(self) -> None:
        with self._lock:
            self._results.clear()
