"""
SQLite strategies.

``SQLiteStrategy`` stores JSON text and searches with ``json_extract`` (the
JSON1 functions are built into current SQLite). ``SQLiteTextStrategy`` is the
flat-text fallback for builds without JSON support: the column holds
serialized JSON in a TEXT column and cannot be searched structurally.
"""

from __future__ import annotations

import json
from typing import Any

from sqlalchemy import JSON, Text
from sqlalchemy.dialects.sqlite.base import SQLiteDialect
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine

from jsonlocale.strategies.base import StorageStrategy, BindCollector, comparison_value, json_path


class JSONText(TypeDecorator):
    """Dict stored as serialized JSON in a TEXT column."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> str | None:
        if value is None:
            return None
        return json.dumps(value, ensure_ascii=False)

    def process_result_value(self, value: Any, dialect: Any) -> Any:
        if value is None or value == "":
            return None
        return json.loads(value)


class SQLiteStrategy(StorageStrategy):
    """JSON-capable SQLite."""

    name = "sqlite"

    def dialect_class(self) -> type[Dialect]:
        return SQLiteDialect

    def column_type(self) -> TypeEngine:
        return JSON()

    def expected_column_type(self) -> str:
        return "JSON"

    def migration_example(self, table: str, column: str) -> str:
        return (
            f'op.add_column("{table}", sa.Column("{column}", sa.JSON(), '
            f'server_default="{{}}", nullable=False))'
        )

    def _field_condition(
        self,
        column: str,
        locale: str,
        field: str,
        value: Any,
        case_sensitive: bool,
        params: BindCollector,
    ) -> str:
        extracted = f"json_extract({column}, {params.add(json_path(locale, field))})"
        placeholder = params.add(comparison_value(value))
        if case_sensitive:
            return f"{extracted} = {placeholder}"
        return f"{extracted} LIKE {placeholder} COLLATE NOCASE"


class SQLiteTextStrategy(StorageStrategy):
    """SQLite without structured query support."""

    name = "sqlite"
    supports_queries = False

    def dialect_class(self) -> type[Dialect]:
        return SQLiteDialect

    def column_type(self) -> TypeEngine:
        return JSONText()

    def expected_column_type(self) -> str:
        return "TEXT"

    def migration_example(self, table: str, column: str) -> str:
        return (
            f'op.add_column("{table}", sa.Column("{column}", sa.Text(), '
            f'server_default="{{}}", nullable=False))'
        )
