"""
OCR API Routes.

Provides endpoints for text extraction, the recent-results history,
text edits, analytics and download.
"""

import asyncio
import json
import logging
import time
from typing import Optional, Set
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import PlainTextResponse, StreamingResponse
from pydantic import ValidationError

from core.analytics import result_stats
from core.errors import RecognitionError
from core.history import ResultHistory, build_result
from core.models import OCRResult, OCRSettings, TextStats, TextUpdateRequest
from core.modules.ocr import process_image
from ..deps import get_engine_factory, get_history, get_settings

router = APIRouter(prefix="/ocr", tags=["ocr"])
logger = logging.getLogger(__name__)

LANGUAGES = [
    {"code": "eng", "name": "English"},
    {"code": "spa", "name": "Spanish"},
    {"code": "fra", "name": "French"},
    {"code": "deu", "name": "German"},
    {"code": "ita", "name": "Italian"},
    {"code": "por", "name": "Portuguese"},
    {"code": "rus", "name": "Russian"},
    {"code": "chi_sim", "name": "Chinese (Simplified)"},
    {"code": "jpn", "name": "Japanese"},
    {"code": "kor", "name": "Korean"},
    {"code": "ara", "name": "Arabic"},
    {"code": "hin", "name": "Hindi"},
]

PAGE_SEG_MODES = [
    {"value": 0, "name": "Orientation and script detection (OSD) only"},
    {"value": 1, "name": "Automatic page segmentation with OSD"},
    {"value": 3, "name": "Fully automatic page segmentation (default)"},
    {"value": 4, "name": "Assume a single column of text of variable sizes"},
    {"value": 6, "name": "Assume a single uniform block of text"},
    {"value": 7, "name": "Treat the image as a single text line"},
    {"value": 8, "name": "Treat the image as a single word"},
    {"value": 10, "name": "Treat the image as a single character"},
    {"value": 11, "name": "Sparse text. Find as much text as possible"},
    {"value": 13, "name": "Raw line. Treat as single text line, bypassing hacks"},
]

ENGINE_MODES = [
    {"value": 0, "name": "Legacy engine only"},
    {"value": 1, "name": "Neural nets LSTM engine only"},
    {"value": 2, "name": "Legacy + LSTM engines"},
    {"value": 3, "name": "Default, based on what is available"},
]

# SSE event listeners
_listeners: Set[asyncio.Queue] = set()


def publish_event(data: dict) -> None:
    """Push an event to every connected SSE client."""
    if not _listeners:
        return
    event_str = f"data: {json.dumps(data)}\n\n"
    for queue in list(_listeners):
        queue.put_nowait(event_str)


def _progress_sink(job_id: str):
    def _on_progress(progress: int, message: str) -> None:
        publish_event(
            {
                "type": "progress",
                "job_id": job_id,
                "progress": progress,
                "message": message,
            }
        )

    return _on_progress


def _get_result_or_404(history: ResultHistory, result_id: UUID) -> OCRResult:
    result = history.get(result_id)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Result not found: {result_id}"
        )
    return result


@router.get("/events")
async def sse_events():
    """Server-Sent Events endpoint for OCR progress updates."""
    queue: asyncio.Queue = asyncio.Queue()
    _listeners.add(queue)

    async def event_generator():
        try:
            while True:
                event = await queue.get()
                yield event
        finally:
            _listeners.discard(queue)

    return StreamingResponse(event_generator(), media_type="text/event-stream")


@router.get("/options")
async def get_options(settings=Depends(get_settings)):
    """Languages and modes the settings form can offer."""
    return {
        "default_language": settings.default_language,
        "languages": LANGUAGES,
        "page_seg_modes": PAGE_SEG_MODES,
        "ocr_engine_modes": ENGINE_MODES,
    }


@router.post("", response_model=OCRResult)
async def extract_text(
    file: UploadFile = File(...),
    language: Optional[str] = Form(default=None),
    page_seg_mode: int = Form(default=3),
    ocr_engine_mode: int = Form(default=1),
    whitelist: Optional[str] = Form(default=None),
    blacklist: Optional[str] = Form(default=None),
    preprocess: bool = Form(default=False),
    job_id: Optional[str] = Form(default=None),
    settings=Depends(get_settings),
    engine_factory=Depends(get_engine_factory),
    history: ResultHistory = Depends(get_history),
):
    """
    Run OCR on an uploaded image and store the result in the history.

    Progress is broadcast on /ocr/events tagged with ``job_id``.
    """
    payload = await file.read()
    if not payload:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Uploaded file is empty")

    try:
        ocr_settings = OCRSettings(
            language=language or settings.default_language,
            page_seg_mode=page_seg_mode,
            ocr_engine_mode=ocr_engine_mode,
            whitelist=whitelist or None,
            blacklist=blacklist or None,
            preprocess=preprocess,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=exc.errors(include_url=False),
        ) from exc

    job_id = job_id or str(uuid4())
    start_time = time.perf_counter()
    try:
        output = await process_image(
            payload,
            _progress_sink(job_id),
            ocr_settings,
            engine_factory=engine_factory,
        )
    except RecognitionError as exc:
        logger.warning("[%s] OCR failed for %s: %s", job_id, file.filename, exc)
        publish_event({"type": "failed", "job_id": job_id, "error_message": str(exc)})
        raise HTTPException(
            status_code=exc.status_code,
            detail={"code": exc.error_code, "message": str(exc), "job_id": job_id},
        ) from exc

    processing_ms = (time.perf_counter() - start_time) * 1000
    result = history.add(build_result(output, ocr_settings, processing_ms, file.filename))
    publish_event(
        {
            "type": "complete",
            "job_id": job_id,
            "result_id": str(result.result_id),
            "message": (
                f"Text extraction complete! Found {result.word_count} words "
                f"in {processing_ms:.0f}ms"
            ),
        }
    )
    return result


@router.get("/results", response_model=list[OCRResult])
async def list_results(history: ResultHistory = Depends(get_history)):
    """Recent results, newest first."""
    return history.list()


@router.get("/results/{result_id}", response_model=OCRResult)
async def get_result(result_id: UUID, history: ResultHistory = Depends(get_history)):
    return _get_result_or_404(history, result_id)


@router.put("/results/{result_id}/text", response_model=OCRResult)
async def update_result_text(
    result_id: UUID,
    request: TextUpdateRequest,
    history: ResultHistory = Depends(get_history),
):
    """Replace the text of a result (user edit)."""
    updated = history.update_text(result_id, request.text)
    if updated is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"Result not found: {result_id}"
        )
    return updated


@router.get("/results/{result_id}/analytics", response_model=TextStats)
async def get_result_analytics(result_id: UUID, history: ResultHistory = Depends(get_history)):
    return result_stats(_get_result_or_404(history, result_id))


@router.get("/results/{result_id}/download")
async def download_result(result_id: UUID, history: ResultHistory = Depends(get_history)):
    """Download the result text as a .txt attachment."""
    result = _get_result_or_404(history, result_id)
    filename = f"extracted-text-{int(result.timestamp.timestamp() * 1000)}.txt"
    return PlainTextResponse(
        result.text,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
