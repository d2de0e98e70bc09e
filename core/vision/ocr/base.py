"""Base OCR engine interface."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Union

from ...models import RecognitionOutput
from .progress import EngineStatus

StatusSink = Callable[[EngineStatus], None]
ImageInput = Union[str, bytes, Any]
ParameterValue = Union[str, int]


class RecognitionEngine(ABC):
    """
    Abstract OCR engine with an explicit lifecycle.

    One instance serves exactly one recognition call:
    load -> set_parameters -> recognize -> terminate.
    """

    @abstractmethod
    async def load(self, language: str, on_status: StatusSink) -> None:
        """Load the engine and language data, reporting status to ``on_status``."""
        raise NotImplementedError

    @abstractmethod
    async def set_parameters(self, parameters: dict[str, ParameterValue]) -> None:
        """Apply engine parameters (tessedit_* names)."""
        raise NotImplementedError

    @abstractmethod
    async def recognize(self, image: ImageInput) -> Union[RecognitionOutput, Mapping[str, Any]]:
        """
        Recognize text in an in-memory image.

        Returns a RecognitionOutput or a raw mapping with ``text`` and
        ``confidence`` keys (either may be missing or None).
        """
        raise NotImplementedError

    @abstractmethod
    async def terminate(self) -> None:
        """Release engine resources."""
        raise NotImplementedError


EngineFactory = Callable[[], RecognitionEngine]
