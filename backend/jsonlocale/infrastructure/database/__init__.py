"""
Infrastructure Database Module.

Provides engine/session helpers and backend detection.
"""

from .database import (
    create_async_engine_from_settings,
    create_engine_from_settings,
    detect_backend,
    get_async_session,
    session_scope,
)

__all__ = [
    "create_async_engine_from_settings",
    "create_engine_from_settings",
    "detect_backend",
    "get_async_session",
    "session_scope",
]
