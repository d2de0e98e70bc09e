import asyncio
import sys
from importlib.metadata import PackageNotFoundError, version

import pytesseract
from fastapi import APIRouter

from app.deps import get_history, get_settings

router = APIRouter(prefix="/system", tags=["system"])


def _pkg_version(*names: str) -> str:
    for name in names:
        try:
            return version(name)
        except PackageNotFoundError:
            continue
    return "missing"


def _tesseract_version() -> str:
    try:
        return str(pytesseract.get_tesseract_version())
    except (pytesseract.TesseractNotFoundError, OSError):
        return "missing"


@router.get("/runtime")
async def get_runtime_status():
    settings = get_settings()
    history = get_history()
    loop = asyncio.get_running_loop()
    tesseract_version = await loop.run_in_executor(None, _tesseract_version)

    return {
        "versions": {
            "python": sys.version.split()[0],
            "fastapi": _pkg_version("fastapi"),
            "pydantic": _pkg_version("pydantic"),
            "httpx": _pkg_version("httpx"),
            "pytesseract": _pkg_version("pytesseract"),
            "opencv": _pkg_version("opencv-python-headless", "opencv-python"),
            "tesseract": tesseract_version,
        },
        "settings": {
            "ocr": {
                "engine": settings.ocr_engine,
                "default_language": settings.default_language,
                "history_max_results": settings.ocr_history_max_results,
            },
            "summarize": {
                "api_url": settings.summarize_api_url,
                "token_configured": bool(settings.huggingface_api_token),
                "timeout_seconds": settings.summarize_timeout_seconds,
                "max_warmup_seconds": settings.summarize_max_warmup_seconds,
            },
        },
        "history": {"stored_results": len(history)},
    }
