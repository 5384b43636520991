"""Backend identifier -> shared strategy instance."""

from __future__ import annotations

import threading

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from jsonlocale.core.config import get_config
from jsonlocale.core.exceptions import UnsupportedBackendError
from jsonlocale.strategies.base import StorageStrategy
from jsonlocale.strategies.mysql import MySQLStrategy
from jsonlocale.strategies.postgresql import PostgreSQLStrategy
from jsonlocale.strategies.sqlite import SQLiteStrategy, SQLiteTextStrategy

BACKEND_ALIASES: dict[str, str] = {
    "postgresql": "postgresql",
    "postgres": "postgresql",
    "mysql": "mysql",
    "mariadb": "mysql",
    "sqlite": "sqlite",
}

_instances: dict[type[StorageStrategy], StorageStrategy] = {}
_lock = threading.Lock()


def normalize_backend_name(backend: str) -> str:
    """
    Reduce a dialect name or URL to a canonical backend name.

    ``postgresql+asyncpg``, ``PostgreSQL`` and ``postgresql://u@h/db`` all
    become ``postgresql``.
    """
    name = backend.strip().lower()
    if "://" in name:
        try:
            name = make_url(backend.strip()).get_backend_name().lower()
        except ArgumentError:
            raise UnsupportedBackendError(backend) from None
    name = name.split("+", 1)[0]
    canonical = BACKEND_ALIASES.get(name)
    if canonical is None:
        raise UnsupportedBackendError(backend)
    return canonical


def strategy_class_for(backend: str, *, sqlite_json: bool | None = None) -> type[StorageStrategy]:
    canonical = normalize_backend_name(backend)
    if canonical == "postgresql":
        return PostgreSQLStrategy
    if canonical == "mysql":
        return MySQLStrategy
    if sqlite_json is None:
        sqlite_json = get_config().settings.sqlite_json
    return SQLiteStrategy if sqlite_json else SQLiteTextStrategy


def strategy_for_backend(backend: str, *, sqlite_json: bool | None = None) -> StorageStrategy:
    """Return the shared strategy for ``backend``, creating it on first use."""
    strategy_cls = strategy_class_for(backend, sqlite_json=sqlite_json)
    strategy = _instances.get(strategy_cls)
    if strategy is None:
        with _lock:
            strategy = _instances.get(strategy_cls)
            if strategy is None:
                strategy = _instances[strategy_cls] = strategy_cls()
    return strategy


def clear_strategies() -> None:
    """Forget shared instances (and with them the one-shot advisory flags)."""
    with _lock:
        _instances.clear()
