"""MySQL / MariaDB strategy: JSON column, ``JSON_EXTRACT`` and ``JSON_CONTAINS``."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON
from sqlalchemy.dialects.mysql.base import MySQLDialect
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeEngine

from jsonlocale.strategies.base import StorageStrategy, BindCollector, comparison_value, json_path


class MySQLStrategy(StorageStrategy):
    """Native JSON storage; case-sensitive searches use ``JSON_CONTAINS``."""

    name = "mysql"
    supports_containment = True

    def dialect_class(self) -> type[Dialect]:
        return MySQLDialect

    def column_type(self) -> TypeEngine:
        return JSON()

    def expected_column_type(self) -> str:
        return "JSON"

    def migration_example(self, table: str, column: str) -> str:
        return f'op.add_column("{table}", sa.Column("{column}", sa.JSON(), nullable=False))'

    def _field_condition(
        self,
        column: str,
        locale: str,
        field: str,
        value: Any,
        case_sensitive: bool,
        params: BindCollector,
    ) -> str:
        extracted = f"JSON_UNQUOTE(JSON_EXTRACT({column}, {params.add(json_path(locale, field))}))"
        # case-sensitive searches go through JSON_CONTAINS instead
        return f"UPPER({extracted}) LIKE UPPER({params.add(comparison_value(value))})"

    def _containment_condition(self, column: str, placeholder: str) -> str:
        return f"JSON_CONTAINS({column}, {placeholder})"

    def _index_advisory(self, model: Any, column: str, bind: Any) -> str | None:
        return (
            f"Model {model.__name__} is using MySQL with JSON column '{column}'. "
            f"Consider adding functional indexes for frequently queried translation fields."
        )
