"""
OCR & Summarization Service - FastAPI Application.

Main entry point for the web API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.errors import ServiceError
from core.logging_config import init_default_logging
from .deps import get_settings
from .routes import ocr, summarize, system

init_default_logging()
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


def _request_id(request: Request) -> str:
    """Request id set by the middleware, or a fresh one for early failures."""
    rid = getattr(request.state, "request_id", None)
    if not rid:
        rid = str(uuid4())
        request.state.request_id = rid
    return rid


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    detail: Any = None,
) -> JSONResponse:
    """Structured error body shared by every handler below."""
    rid = _request_id(request)
    body = {
        "detail": message if detail is None else detail,
        "error": {"code": code, "message": message, "request_id": rid},
    }
    return JSONResponse(status_code=status_code, content=body, headers={REQUEST_ID_HEADER: rid})


def _describe_http_detail(exc: HTTPException) -> tuple[str, str]:
    """(code, message) for an HTTPException whose detail may be str, dict or list."""
    detail = exc.detail
    code = f"HTTP_{exc.status_code}"
    message = f"HTTP {exc.status_code}"
    if isinstance(detail, str):
        message = detail
    elif isinstance(detail, dict):
        code = detail.get("code") or code
        if isinstance(detail.get("message"), str):
            message = detail["message"]
    return code, message


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info(
        "Starting: ocr_engine=%s default_language=%s summarize_token=%s",
        settings.ocr_engine,
        settings.default_language,
        "set" if settings.huggingface_api_token else "missing",
    )
    if not settings.huggingface_api_token:
        logger.warning("HUGGINGFACE_API_TOKEN is not set; /api/summarize will return 500")
    yield
    logger.info("Shutting down")


app = FastAPI(
    title="OCR & Summarization API",
    description="Image text extraction with Tesseract and abstractive summaries via Hugging Face",
    version="0.1.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def attach_request_id(request: Request, call_next):
    rid = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
    request.state.request_id = rid
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = rid
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# /api/summarize stays unversioned
app.include_router(summarize.router, prefix="/api")
app.include_router(ocr.router, prefix="/api/v1")
app.include_router(system.router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    code, message = _describe_http_detail(exc)
    return error_response(request, exc.status_code, code, message, detail=exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(
        request, 422, "VALIDATION_ERROR", "Request validation failed", detail=exc.errors()
    )


@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    logger.warning("[%s] %s: %s", _request_id(request), exc.error_code, exc)
    return error_response(request, exc.status_code, exc.error_code, str(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log the traceback, answer with a sanitized 500."""
    logger.exception(
        "[%s] Unhandled exception on %s %s",
        _request_id(request),
        request.method,
        request.url.path,
    )
    return error_response(request, 500, "INTERNAL_SERVER_ERROR", "Internal server error")


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
