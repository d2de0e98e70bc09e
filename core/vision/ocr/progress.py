"""Engine phases and their mapping onto a single 0-100 progress scale."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ...models import ProgressEvent

ProgressCallback = Callable[[int, str], None]

# Recognition owns the last (and largest) share of the bar.
RECOGNITION_START = 40
RECOGNITION_SPAN = 100 - RECOGNITION_START


class EnginePhase(str, Enum):
    """Lifecycle phases an OCR engine reports while it works."""

    LOADING_CORE = "loading tesseract core"
    LOADING_LANGUAGE = "loading language traineddata"
    INITIALIZING = "initializing api"
    INITIALIZED = "initialized tesseract"
    RECOGNIZING = "recognizing text"


@dataclass(frozen=True)
class EngineStatus:
    """Native status emitted by an engine; ``progress`` is 0..1 within the phase."""

    phase: EnginePhase
    progress: float = 0.0


_FIXED_PHASES = {
    EnginePhase.LOADING_CORE: (10, "Loading OCR engine..."),
    EnginePhase.LOADING_LANGUAGE: (20, "Loading language data..."),
    EnginePhase.INITIALIZING: (30, "Initializing OCR..."),
    EnginePhase.INITIALIZED: (40, "OCR engine ready"),
}


def map_status(status: EngineStatus) -> ProgressEvent:
    """Map an engine status to a normalized progress event."""
    if status.phase is EnginePhase.RECOGNIZING:
        fraction = min(1.0, max(0.0, float(status.progress)))
        return ProgressEvent(
            progress=RECOGNITION_START + round(RECOGNITION_SPAN * fraction),
            message="Recognizing text...",
        )
    percent, message = _FIXED_PHASES[status.phase]
    return ProgressEvent(progress=percent, message=message)


class ProgressTracker:
    """
    Forwards progress to the caller's sink, never letting the percentage regress.

    Engines are free to report phases out of their nominal order; the tracker
    keeps a high-water mark so the caller always sees a non-decreasing value.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback
        self.last_progress = 0

    def emit(self, progress: int, message: str) -> None:
        self.last_progress = max(self.last_progress, int(progress))
        if self._callback is not None:
            self._callback(self.last_progress, message)

    def on_status(self, status: EngineStatus) -> None:
        event = map_status(status)
        self.emit(event.progress, event.message)
