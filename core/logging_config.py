"""
Logging configuration for the service.

Files go to logs/ next to the package (OCR_LOG_DIR overrides it). The root
logger writes ``<date>_app.log``; modules that want their own file call
``setup_module_logger`` and get ``<sub>/<date>/<name>.log``.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

_env_log_dir = os.getenv("OCR_LOG_DIR")
LOG_DIR = Path(_env_log_dir).expanduser() if _env_log_dir else Path(__file__).parent.parent / "logs"
FALLBACK_LOG_DIR = Path(os.getenv("OCR_LOG_DIR_FALLBACK", "/tmp/ocr-summarizer-logs"))

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries that log request/IO chatter at INFO
NOISY_LOGGERS = ("PIL", "pytesseract", "httpx", "httpcore", "multipart")


def _formatter() -> logging.Formatter:
    return logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)


def _today() -> str:
    return datetime.now().strftime("%Y%m%d")


def _is_truthy(value: str) -> bool:
    return value.strip().lower() not in {"", "0", "false", "off", "no"}


def _writable_log_dir() -> Path:
    """LOG_DIR if it can be created, otherwise the fallback (read-only checkouts)."""
    global LOG_DIR
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
    except OSError:
        if FALLBACK_LOG_DIR == LOG_DIR:
            raise
        LOG_DIR = FALLBACK_LOG_DIR
        LOG_DIR.mkdir(parents=True, exist_ok=True)
    return LOG_DIR


def _module_log_path(log_file: str) -> Path:
    base = _writable_log_dir()
    relative = Path(log_file)
    if relative.parent != Path("."):
        path = base / relative.parent / _today() / relative.name
    else:
        path = base / f"{_today()}_{relative.name}"
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        FALLBACK_LOG_DIR.mkdir(parents=True, exist_ok=True)
        path = FALLBACK_LOG_DIR / path.name
    return path


def _add_file_handler(logger: logging.Logger, path: Path, level: int) -> None:
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == path:
            return
    try:
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        # Console output still works without the file
        return
    handler.setLevel(level)
    handler.setFormatter(_formatter())
    logger.addHandler(handler)


def _add_stdout_handler(logger: logging.Logger, level: int) -> None:
    for handler in logger.handlers:
        if not isinstance(handler, logging.FileHandler) and getattr(handler, "stream", None) is sys.stdout:
            return
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(_formatter())
    logger.addHandler(handler)


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = True,
) -> logging.Logger:
    """
    Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Log file name, prefixed with today's date
        console: Also log to stdout
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console:
        _add_stdout_handler(root_logger, level)
    if log_file:
        _add_file_handler(root_logger, _writable_log_dir() / f"{_today()}_{log_file}", level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def setup_module_logger(
    name: str,
    log_file: str,
    level: int = logging.INFO,
    console_env: Optional[str] = None,
) -> logging.Logger:
    """
    Give a module its own dated log file without touching the root handlers.

    ``log_file`` may contain a sub directory ("summarizer/summarizer.log"),
    in which case the date becomes a directory level instead of a prefix.
    MODULE_LOG_TO_STDOUT=1 (or ``console_env``) mirrors the output to stdout.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    _add_file_handler(logger, _module_log_path(log_file), level)

    mirror = _is_truthy(os.getenv("MODULE_LOG_TO_STDOUT", "0"))
    if console_env:
        mirror = mirror or _is_truthy(os.getenv(console_env, "0"))
    if mirror:
        _add_stdout_handler(logger, level)
    return logger


def get_log_level(env_var: str, default: int = logging.INFO) -> int:
    """Read a level name (DEBUG, INFO, ...) from ``env_var``; unknown names give ``default``."""
    value = os.getenv(env_var, "").upper().strip()
    if not value:
        return default
    level = getattr(logging, value, default)
    return level if isinstance(level, int) else default


_initialized = False


def init_default_logging():
    """Initialize default logging once per process."""
    global _initialized
    if _initialized:
        return
    setup_logging(level=get_log_level("LOG_LEVEL"), log_file="app.log", console=True)
    _initialized = True


__all__ = [
    "LOG_DIR",
    "get_log_level",
    "init_default_logging",
    "setup_logging",
    "setup_module_logger",
]
