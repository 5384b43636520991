"""
Infrastructure Module - Core infrastructure components.

Provides:
- database: Engine/session helpers and backend detection
- logging: Logging configuration and utilities
"""

from jsonlocale.infrastructure.database import detect_backend, session_scope
from jsonlocale.infrastructure.logging import get_logger, setup_logging

__all__ = [
    "detect_backend",
    "session_scope",
    "get_logger",
    "setup_logging",
]
