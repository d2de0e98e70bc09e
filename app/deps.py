"""
Dependency injection for FastAPI.

Provides shared resources and configuration across routes.
"""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from core.history import DEFAULT_MAX_RESULTS, ResultHistory
from core.summarizer import DEFAULT_API_URL, HuggingFaceClient, Summarizer
from core.vision.ocr import (
    EngineFactory,
    MockRecognitionEngine,
    TesseractEngine,
    configure_tesseract,
)


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Summarization
    huggingface_api_token: Optional[str] = None
    summarize_api_url: str = DEFAULT_API_URL
    summarize_timeout_seconds: float = 60.0
    summarize_max_warmup_seconds: float = 120.0

    # OCR
    ocr_engine: str = "tesseract"  # tesseract | mock
    tesseract_cmd: Optional[str] = None
    default_language: str = "eng"
    ocr_history_max_results: int = DEFAULT_MAX_RESULTS

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def get_summarizer() -> Summarizer:
    """Summarizer bound to the configured inference endpoint."""
    settings = get_settings()
    client = HuggingFaceClient(
        token=settings.huggingface_api_token,
        api_url=settings.summarize_api_url,
        timeout=settings.summarize_timeout_seconds,
    )
    return Summarizer(client, max_warmup_seconds=settings.summarize_max_warmup_seconds)


def get_engine_factory() -> EngineFactory:
    """Engine factory for the configured OCR backend; each call gets a fresh engine."""
    settings = get_settings()
    if settings.ocr_engine.lower() == "mock":
        return MockRecognitionEngine
    configure_tesseract(settings.tesseract_cmd)
    return TesseractEngine


# Global history instance
_history_instance: Optional[ResultHistory] = None


def get_history() -> ResultHistory:
    """Get the process-wide recent-results history."""
    global _history_instance
    if _history_instance is None:
        _history_instance = ResultHistory(get_settings().ocr_history_max_results)
    return _history_instance
