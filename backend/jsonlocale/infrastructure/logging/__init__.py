"""
Infrastructure Logging Module.

Provides log formatters, context propagation and setup helpers.
"""

from .logging_config import (
    ContextLogger,
    HumanFormatter,
    LogContext,
    StructuredFormatter,
    get_log_level,
    get_logger,
    set_log_level,
    setup_logging,
)

__all__ = [
    "ContextLogger",
    "HumanFormatter",
    "LogContext",
    "StructuredFormatter",
    "get_log_level",
    "get_logger",
    "set_log_level",
    "setup_logging",
]
