"""
Logging configuration for jsonlocale.

Features:
- Log level from the `log_level` setting (JSONLOCALE_LOG_LEVEL) or setup_logging()
- Structured JSON lines for files and log shippers
- Colored human-readable console output
- LogContext for attaching model/column context to records
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, MutableMapping

from jsonlocale.core.config import get_config

DEFAULT_LOG_LEVEL = "INFO"
ROOT_LOGGER_NAME = "jsonlocale"

_current_log_level = DEFAULT_LOG_LEVEL.upper()


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if getattr(record, "context", None):
            log_data["context"] = record.context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class HumanFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "") if self.use_color else ""
        reset = self.RESET if self.use_color else ""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        base_msg = f"[{timestamp}] {color}{record.levelname:8}{reset} | {record.name:30} | {record.getMessage()}"

        if getattr(record, "context", None):
            base_msg += f" | context={json.dumps(record.context, ensure_ascii=False, default=str)}"

        if record.exc_info:
            base_msg += f"\n{self.formatException(record.exc_info)}"

        return base_msg


class LogContext:
    """Context manager for adding context to logs."""

    _current_context: dict[str, Any] = {}

    def __init__(self, **kwargs: Any):
        self._new_context = kwargs
        self._old_context: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._old_context = LogContext._current_context.copy()
        LogContext._current_context = {**self._old_context, **self._new_context}
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        LogContext._current_context = self._old_context

    @classmethod
    def get_context(cls) -> dict[str, Any]:
        return cls._current_context.copy()


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that merges LogContext and a per-call ``context``."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        context = kwargs.pop("context", None)
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {**LogContext.get_context(), **(self.extra or {}), **(context or {})}
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(
    level: str | None = None,
    enable_console: bool = True,
    log_file: str | Path | None = None,
    structured: bool = False,
) -> None:
    """
    Setup logging for the jsonlocale logger tree.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL); defaults to
            the configured `log_level` setting
        enable_console: Enable console logging
        log_file: Write structured JSON lines to this file
        structured: Use JSON lines on the console too
    """
    global _current_log_level

    _current_log_level = (level or get_config().settings.log_level).upper()

    numeric_level = getattr(logging, _current_log_level, logging.INFO)
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(StructuredFormatter() if structured else HumanFormatter())
        console_handler.setLevel(numeric_level)
        root_logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        file_handler.setLevel(numeric_level)
        root_logger.addHandler(file_handler)


def get_logger(name: str, **context: Any) -> ContextLogger:
    """
    Get a logger instance.

    Args:
        name: Logger name (usually __name__)
        context: Context attached to every record from this logger

    Returns:
        ContextLogger instance
    """
    return ContextLogger(logging.getLogger(name), context)


def set_log_level(level: str) -> None:
    """
    Dynamically set the log level.

    Args:
        level: New log level
    """
    global _current_log_level
    _current_log_level = level.upper()

    numeric_level = getattr(logging, _current_log_level, logging.INFO)
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(numeric_level)
    for handler in root_logger.handlers:
        handler.setLevel(numeric_level)


def get_log_level() -> str:
    """Get the current log level."""
    return _current_log_level
