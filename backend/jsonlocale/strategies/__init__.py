"""
Storage strategies.

One variant per backend JSON dialect:
- PostgreSQLStrategy: JSONB, ``->``/``->>`` extraction, ``@>`` containment
- MySQLStrategy: JSON, ``JSON_EXTRACT`` + LIKE, ``JSON_CONTAINS``
- SQLiteStrategy: JSON text, ``json_extract`` + LIKE
- SQLiteTextStrategy: flat TEXT, no structured queries
"""

from jsonlocale.strategies.base import MatchMode, Predicate, StorageStrategy, json_path, type_name
from jsonlocale.strategies.mysql import MySQLStrategy
from jsonlocale.strategies.postgresql import PostgreSQLStrategy
from jsonlocale.strategies.registry import (
    clear_strategies,
    normalize_backend_name,
    strategy_for_backend,
)
from jsonlocale.strategies.sqlite import JSONText, SQLiteStrategy, SQLiteTextStrategy

__all__ = [
    "MatchMode",
    "Predicate",
    "StorageStrategy",
    "json_path",
    "type_name",
    "MySQLStrategy",
    "PostgreSQLStrategy",
    "SQLiteStrategy",
    "SQLiteTextStrategy",
    "JSONText",
    "clear_strategies",
    "normalize_backend_name",
    "strategy_for_backend",
]
