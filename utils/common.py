"""Common utilities for the logcat delegate.

This module centralises logging setup and trace identifier management used
across the capture pipeline. Each capture session runs inside its own trace
scope so log records emitted by a worker can be told apart.
"""

from __future__ import annotations

import datetime as dt
import logging
import os
import platform
import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from pathlib import Path
from typing import Iterator, List, Optional


_TRACE_ID_DEFAULT = "-"
_TRACE_ID_VAR: ContextVar[str] = ContextVar("logcat_delegate_trace_id", default=_TRACE_ID_DEFAULT)

_LOG_FILE_PREFIX = "logcat_delegate_"

# Track whether log cleanup has already run for the current day.
_logs_cleaned_today = False

# Applied to loggers and file handlers created after set_log_level / set_file_logging.
_file_log_level = logging.INFO
_file_logging_enabled = True


class TraceIdFilter(logging.Filter):
    """Augment log records with their active trace identifier."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_trace_id()
        return True


def generate_trace_id() -> str:
    """Return a new random trace identifier."""
    return uuid.uuid4().hex


def get_trace_id() -> str:
    """Return the current trace identifier ("-" when unset)."""
    return _TRACE_ID_VAR.get()


def set_trace_id(trace_id: Optional[str]) -> Token[str]:
    """Set the active trace identifier and return the context token."""
    value = trace_id or _TRACE_ID_DEFAULT
    return _TRACE_ID_VAR.set(value)


def reset_trace_id(token: Token[str]) -> None:
    """Reset the trace identifier to the previous context."""
    _TRACE_ID_VAR.reset(token)


@contextmanager
def trace_id_scope(trace_id: Optional[str]) -> Iterator[None]:
    """Context manager that temporarily sets the trace identifier."""
    token = set_trace_id(trace_id)
    try:
        yield
    finally:
        reset_trace_id(token)


def _resolve_logs_dir() -> Path:
    """Return the directory path where log files should be stored."""
    system = platform.system().lower()
    home_dir = Path.home()

    if system == "darwin":
        return home_dir / ".logcat_delegate_logs"

    if system == "linux":
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        if xdg_data_home:
            return Path(xdg_data_home) / "logcat_delegate" / "logs"
        return home_dir / ".local" / "share" / "logcat_delegate" / "logs"

    return home_dir / ".logcat_delegate_logs"


def _cleanup_old_logs(logs_dir: Path, bootstrap_logger: logging.Logger) -> int:
    """Remove log files that do not belong to today (runs at most once per day)."""
    global _logs_cleaned_today

    if _logs_cleaned_today:
        return 0

    try:
        today = dt.date.today().strftime("%Y%m%d")
        cleaned_count = 0
        date_start = len(_LOG_FILE_PREFIX)

        for filename in os.listdir(logs_dir):
            if not (filename.startswith(_LOG_FILE_PREFIX) and filename.endswith(".log")):
                continue

            date_part = filename[date_start:date_start + 8]
            if len(date_part) != 8 or not date_part.isdigit():
                continue

            if date_part == today:
                continue

            old_log_path = logs_dir / filename
            try:
                old_log_path.unlink()
                cleaned_count += 1
            except OSError:
                bootstrap_logger.exception("Error removing stale log file", extra={"stale_log": str(old_log_path)})

        _logs_cleaned_today = True
        return cleaned_count
    except OSError:
        bootstrap_logger.exception(
            "Unexpected failure while cleaning logs directory", extra={"logs_dir": str(logs_dir)}
        )
        return 0


def _ensure_logger_filters(logger: logging.Logger) -> None:
    """Attach the TraceIdFilter to the logger if not already present."""
    if any(isinstance(item, TraceIdFilter) for item in logger.filters):
        return
    logger.addFilter(TraceIdFilter())


def _prepare_logs_dir() -> Path:
    logs_dir = _resolve_logs_dir()
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        logs_dir = Path.cwd() / "logs"
        logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def _create_file_handler(logs_dir: Path) -> logging.FileHandler:
    """Return a trace-aware file handler writing to a new timestamped log file."""
    current_time = dt.datetime.now().strftime("%Y%m%d_%H%M%S")
    log_filename = f"{_LOG_FILE_PREFIX}{current_time}.log"

    try:
        file_handler = logging.FileHandler(logs_dir / log_filename, encoding="utf-8")
    except (OSError, PermissionError):
        fallback_dir = Path.cwd() / "logs"
        fallback_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(fallback_dir / log_filename, encoding="utf-8")

    file_formatter = logging.Formatter(
        "%(asctime)s %(trace_id)s %(name)-20s %(levelname)-8s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setLevel(_file_log_level)
    file_handler.setFormatter(file_formatter)
    file_handler.addFilter(TraceIdFilter())
    return file_handler


def get_logger(name: str = "logcat_delegate") -> logging.Logger:
    """Return a configured logger augmented with trace identifiers."""
    logs_dir = _prepare_logs_dir()

    bootstrap_logger = logging.getLogger("logcat_delegate.bootstrap")
    if not any(isinstance(handler, logging.NullHandler) for handler in bootstrap_logger.handlers):
        bootstrap_logger.addHandler(logging.NullHandler())

    cleaned_count = _cleanup_old_logs(logs_dir, bootstrap_logger)

    logger = logging.getLogger(name)
    _ensure_logger_filters(logger)

    if logger.handlers:
        return logger

    file_handler = None
    if _file_logging_enabled:
        file_handler = _create_file_handler(logs_dir)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_formatter = logging.Formatter("%(levelname)s [%(trace_id)s] %(message)s")
    console_handler.setFormatter(console_formatter)
    console_handler.addFilter(TraceIdFilter())

    logger.addHandler(console_handler)
    logger.setLevel(_file_log_level)

    if cleaned_count > 0:
        logger.info("Removed %s old log file(s)", cleaned_count)

    if name == "logcat_delegate" and file_handler is not None:
        logger.info("Log file created: %s", file_handler.baseFilename)

    return logger


def _managed_loggers() -> List[logging.Logger]:
    """Return every logger configured through :func:`get_logger`."""
    return [
        logger for logger in list(logging.Logger.manager.loggerDict.values())
        if isinstance(logger, logging.Logger)
        and any(isinstance(item, TraceIdFilter) for item in logger.filters)
    ]


def set_log_level(level_name: str) -> None:
    """Apply ``level_name`` to managed loggers and their log file handlers.

    Console handlers keep their WARNING threshold.
    """
    global _file_log_level

    level = logging.getLevelName(level_name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name}")

    _file_log_level = level
    for logger in _managed_loggers():
        logger.setLevel(level)
        for handler in logger.handlers:
            if isinstance(handler, logging.FileHandler):
                handler.setLevel(level)


def set_file_logging(enabled: bool) -> None:
    """Attach or detach log file handlers on every managed logger."""
    global _file_logging_enabled

    _file_logging_enabled = bool(enabled)
    logs_dir = _prepare_logs_dir() if _file_logging_enabled else None

    for logger in _managed_loggers():
        file_handlers = [handler for handler in logger.handlers if isinstance(handler, logging.FileHandler)]
        if _file_logging_enabled:
            if not file_handlers:
                logger.addHandler(_create_file_handler(logs_dir))
            continue
        for handler in file_handlers:
            logger.removeHandler(handler)
            handler.close()


__all__ = [
    "TraceIdFilter",
    "generate_trace_id",
    "get_logger",
    "get_trace_id",
    "reset_trace_id",
    "set_file_logging",
    "set_log_level",
    "set_trace_id",
    "trace_id_scope",
]
