from __future__ import annotations

import pytest

from core.errors import RecognitionError
from core.models import OCRSettings
from core.modules.ocr import RecognitionSession, process_image
from core.vision.ocr import MockRecognitionEngine
from core.vision.ocr.progress import EnginePhase, EngineStatus


class _FailingEngine(MockRecognitionEngine):
    """Mock engine that raises at a chosen lifecycle step."""

    def __init__(self, fail_on: str | None = None, fail_terminate: bool = False):
        super().__init__()
        self.fail_on = fail_on
        self.fail_terminate = fail_terminate

    async def load(self, language, on_status):
        on_status(EngineStatus(EnginePhase.LOADING_CORE))
        if self.fail_on == "load":
            raise RuntimeError("traineddata download failed")
        await super().load(language, on_status)

    async def set_parameters(self, parameters):
        if self.fail_on == "configure":
            raise RuntimeError("bad parameter")
        await super().set_parameters(parameters)

    async def recognize(self, image):
        if self.fail_on == "recognize":
            raise RuntimeError("image could not be read")
        return await super().recognize(image)

    async def terminate(self):
        await super().terminate()
        if self.fail_terminate:
            raise RuntimeError("terminate exploded")


def _factory(engines: list, **kwargs):
    def build():
        engine = _FailingEngine(**kwargs)
        engines.append(engine)
        return engine

    return build


@pytest.mark.asyncio
async def test_release_runs_once_on_success():
    engines = []
    await process_image(b"img", None, OCRSettings(), engine_factory=_factory(engines))

    assert len(engines) == 1
    assert engines[0].terminate_calls == 1


@pytest.mark.parametrize("step", ["load", "configure", "recognize"])
@pytest.mark.asyncio
async def test_release_runs_once_when_a_step_fails(step):
    engines = []
    with pytest.raises(RecognitionError) as exc_info:
        await process_image(b"img", None, OCRSettings(), engine_factory=_factory(engines, fail_on=step))

    assert len(engines) == 1
    assert engines[0].terminate_calls == 1
    assert str(exc_info.value).startswith("Failed to process image with OCR:")


@pytest.mark.asyncio
async def test_terminate_failure_does_not_mask_earlier_error():
    engines = []
    with pytest.raises(RecognitionError) as exc_info:
        await process_image(
            b"img",
            None,
            OCRSettings(),
            engine_factory=_factory(engines, fail_on="recognize", fail_terminate=True),
        )

    assert "image could not be read" in str(exc_info.value)
    assert "terminate" not in str(exc_info.value)
    assert engines[0].terminate_calls == 1


@pytest.mark.asyncio
async def test_terminate_failure_after_success_is_reported():
    engines = []
    with pytest.raises(RecognitionError) as exc_info:
        await process_image(
            b"img",
            None,
            OCRSettings(),
            engine_factory=_factory(engines, fail_terminate=True),
        )

    assert "Failed to release OCR engine" in str(exc_info.value)
    assert engines[0].terminate_calls == 1


@pytest.mark.asyncio
async def test_factory_failure_has_nothing_to_release():
    def broken_factory():
        raise RuntimeError("no engine available")

    with pytest.raises(RecognitionError) as exc_info:
        await process_image(b"img", None, OCRSettings(), engine_factory=broken_factory)

    assert "no engine available" in str(exc_info.value)


@pytest.mark.asyncio
async def test_session_release_is_idempotent():
    engine = MockRecognitionEngine()
    session = RecognitionSession(lambda: engine)

    async with session:
        await session.acquire("eng")
        assert session.engine is engine
        await session.release()

    assert session.engine is None
    assert engine.terminate_calls == 1


@pytest.mark.asyncio
async def test_session_rejects_use_before_acquire():
    session = RecognitionSession(MockRecognitionEngine)

    with pytest.raises(RecognitionError):
        await session.configure({"tessedit_pageseg_mode": 3})
