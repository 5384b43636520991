"""PostgreSQL strategy: JSONB column, ``->``/``->>`` extraction and ``@>`` containment."""

from __future__ import annotations

from typing import Any

from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql.base import PGDialect
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeEngine

from jsonlocale.strategies.base import StorageStrategy, BindCollector, comparison_value


class PostgreSQLStrategy(StorageStrategy):
    """JSONB storage with GIN-indexable containment queries."""

    name = "postgresql"
    supports_containment = True

    def dialect_class(self) -> type[Dialect]:
        return PGDialect

    def column_type(self) -> TypeEngine:
        return JSONB()

    def expected_column_type(self) -> str:
        return "JSONB"

    def migration_example(self, table: str, column: str) -> str:
        return (
            f'op.add_column("{table}", sa.Column("{column}", postgresql.JSONB(), '
            f"server_default=sa.text(\"'{{}}'::jsonb\"), nullable=False))"
        )

    def index_example(self, table: str, column: str) -> str:
        return (
            f'op.create_index("ix_{table}_{column}", "{table}", ["{column}"], '
            f'postgresql_using="gin", postgresql_ops={{"{column}": "jsonb_path_ops"}})'
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
        # case-sensitive searches go through @> instead
        extracted = f"({column} -> {params.add(locale)} ->> {params.add(field)})"
        return f"{extracted} ILIKE {params.add(comparison_value(value))}"

    def _containment_condition(self, column: str, placeholder: str) -> str:
        return f"{column} @> CAST({placeholder} AS JSONB)"

    def _index_advisory(self, model: Any, column: str, bind: Any) -> str | None:
        table = model.__table__
        if bind is not None:
            indexes = inspect(bind).get_indexes(table.name, schema=table.schema)
            has_gin_index = any(
                index.get("column_names") == [column]
                and (index.get("dialect_options") or {}).get("postgresql_using") == "gin"
                for index in indexes
            )
        else:
            has_gin_index = any(
                [c.name for c in index.columns] == [column]
                and index.dialect_kwargs.get("postgresql_using") == "gin"
                for index in table.indexes
            )

        if has_gin_index:
            return None
        return (
            f"Model {model.__name__} is using the '{column}' JSONB column without a GIN index. "
            f"For optimal query performance, consider adding:\n"
            f"{self.index_example(table.name, column)}"
        )
