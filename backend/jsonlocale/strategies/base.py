"""
Storage strategy base class.

A strategy knows, for one database backend, how the structured column is
declared and how search predicates over the embedded locale -> field ->
value mapping are written. Strategy instances are shared: one per variant
per process.
"""

from __future__ import annotations

import json
import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable, Literal, Mapping

from sqlalchemy import TextClause, bindparam, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine

from jsonlocale.core.exceptions import UnsupportedCapabilityError
from jsonlocale.infrastructure.logging import get_logger

logger = get_logger(__name__)

MatchMode = Literal["all", "any"]

PARAM_PREFIX = "tr_"

_PLAIN_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class Predicate:
    """
    A SQL fragment plus its bound parameters.

    ``sql`` refers to the parameters as ``:tr_0``, ``:tr_1`` ... in the
    order of ``params``.
    """
    sql: str
    params: tuple[Any, ...] = field(default_factory=tuple)

    @classmethod
    def never(cls) -> Predicate:
        return cls("1 = 0")

    @property
    def param_names(self) -> list[str]:
        return [f"{PARAM_PREFIX}{i}" for i in range(len(self.params))]

    def to_clause(self) -> TextClause:
        """Convert to a ``text()`` clause with uniquely named bound parameters."""
        clause = text(self.sql)
        if not self.params:
            return clause
        return clause.bindparams(
            *(
                bindparam(name, value, unique=True)
                for name, value in zip(self.param_names, self.params)
            )
        )


class BindCollector:
    """Collects positional parameters and hands out placeholders."""

    def __init__(self) -> None:
        self.values: list[Any] = []

    def add(self, value: Any) -> str:
        self.values.append(value)
        return f":{PARAM_PREFIX}{len(self.values) - 1}"


def json_path(*keys: str) -> str:
    """
    Build a JSON path such as ``$.en.title``.

    Keys that are not plain identifiers are double quoted (``$."pt-BR".title``).
    """
    parts = ["$"]
    for key in keys:
        if _PLAIN_KEY.match(key):
            parts.append(key)
        else:
            parts.append(json.dumps(key))
    return ".".join(parts)


def comparison_value(value: Any) -> Any:
    return None if value is None else str(value)


def type_name(sqltype: TypeEngine, backend: str | None = None) -> str:
    """Upper-case name of the physical type behind ``sqltype``."""
    variants = getattr(sqltype, "_variant_mapping", None)
    if backend and variants and backend in variants:
        sqltype = variants[backend]
    if isinstance(sqltype, TypeDecorator):
        sqltype = sqltype.impl
    return type(sqltype).__name__.upper()


class StorageStrategy(ABC):
    """Backend-specific column typing and predicate construction."""

    name: ClassVar[str] = "base"
    supports_queries: ClassVar[bool] = True
    supports_containment: ClassVar[bool] = False

    def __init__(self) -> None:
        self._advisory_issued = False
        self._advisory_lock = threading.Lock()
        self._dialect: Dialect | None = None

    @classmethod
    def for_backend(cls, backend: str, *, sqlite_json: bool | None = None) -> StorageStrategy:
        """Resolve a backend identifier to its shared strategy instance."""
        from jsonlocale.strategies.registry import strategy_for_backend

        return strategy_for_backend(backend, sqlite_json=sqlite_json)

    @abstractmethod
    def dialect_class(self) -> type[Dialect]:
        """SQLAlchemy dialect whose identifier quoting the predicates use."""

    @abstractmethod
    def column_type(self) -> TypeEngine:
        """SQLAlchemy type the structured column should be declared with."""

    @abstractmethod
    def expected_column_type(self) -> str:
        """Type name the declared or reflected column type must have."""

    @abstractmethod
    def migration_example(self, table: str, column: str) -> str:
        """Alembic snippet that adds the structured column."""

    def accepts_column_type(self, sqltype: TypeEngine) -> bool:
        return type_name(sqltype, self.name) == self.expected_column_type()

    def column_reference(self, table: str | None, column: str, schema: str | None = None) -> str:
        """
        Quoted column reference for raw predicate SQL.

        Reserved words and names that need quoting (``"order"``, ``"User"``)
        are quoted the way the backend's SQLAlchemy dialect quotes them.
        """
        if self._dialect is None:
            self._dialect = self.dialect_class()()
        preparer = self._dialect.identifier_preparer

        parts = []
        if table:
            if schema:
                parts.append(preparer.quote_schema(schema))
            parts.append(preparer.quote(table))
        parts.append(preparer.quote(column))
        return ".".join(parts)

    def default_match(self, case_sensitive: bool) -> MatchMode:
        """
        Match mode used when the caller gives none.

        Containment searches test the whole attribute mapping per locale;
        every other search matches a row when any field comparison does.
        """
        return "all" if case_sensitive and self.supports_containment else "any"

    def build_predicate(
        self,
        column: str,
        attributes: Mapping[str, Any],
        locales: Iterable[str],
        case_sensitive: bool = False,
        match: MatchMode | None = None,
    ) -> Predicate:
        """
        Build a predicate matching rows whose translations hold ``attributes``.

        There is one disjunct per locale. Within a locale, ``match="all"``
        requires every attribute to match and ``match="any"`` requires at
        least one. Without ``match``, see ``default_match``.

        Args:
            column: Column reference, optionally table qualified
            attributes: Field name -> searched value
            locales: Locales to search
            case_sensitive: Exact comparison instead of case-insensitive LIKE
            match: ``"all"``, ``"any"`` or None for the default

        Returns:
            Predicate with positional parameters
        """
        if not self.supports_queries:
            raise UnsupportedCapabilityError(type(self).__name__, "structured translation queries")
        if match is None:
            match = self.default_match(case_sensitive)
        if match not in ("all", "any"):
            raise ValueError(f"match must be 'all' or 'any', got {match!r}")

        locales = list(locales)
        if not attributes or not locales:
            return Predicate.never()

        params = BindCollector()
        joiner = " AND " if match == "all" else " OR "
        disjuncts = []
        for locale in locales:
            if case_sensitive and self.supports_containment:
                conditions = self._containment_conditions(column, locale, attributes, match, params)
            else:
                conditions = [
                    self._field_condition(column, locale, str(field), value, case_sensitive, params)
                    for field, value in attributes.items()
                ]
            if len(conditions) == 1:
                disjuncts.append(conditions[0])
            else:
                disjuncts.append("(" + joiner.join(conditions) + ")")

        return Predicate("(" + " OR ".join(disjuncts) + ")", tuple(params.values))

    def _field_condition(
        self,
        column: str,
        locale: str,
        field: str,
        value: Any,
        case_sensitive: bool,
        params: BindCollector,
    ) -> str:
        raise UnsupportedCapabilityError(type(self).__name__, "structured translation queries")

    def _containment_conditions(
        self,
        column: str,
        locale: str,
        attributes: Mapping[str, Any],
        match: MatchMode,
        params: BindCollector,
    ) -> list[str]:
        if match == "all":
            documents = [{locale: {str(k): v for k, v in attributes.items()}}]
        else:
            documents = [{locale: {str(k): v}} for k, v in attributes.items()]
        return [
            self._containment_condition(column, params.add(json.dumps(document, ensure_ascii=False)))
            for document in documents
        ]

    def _containment_condition(self, column: str, placeholder: str) -> str:
        raise UnsupportedCapabilityError(type(self).__name__, "JSON containment queries")

    def validate_index_recommendation(self, model: Any, column: str, bind: Any = None) -> bool:
        """
        Log a one-time advisory about indexing the structured column.

        Returns True when the advisory was logged by this call.
        """
        if self._advisory_issued:
            return False
        with self._advisory_lock:
            if self._advisory_issued:
                return False
            try:
                message = self._index_advisory(model, column, bind)
            except SQLAlchemyError as e:
                # retried on the next call
                logger.debug(f"Index inspection failed: {e}", context={"column": column})
                return False
            self._advisory_issued = True
        if message:
            logger.warning(
                message,
                context={"model": getattr(model, "__name__", str(model)), "column": column},
            )
            return True
        return False

    def _index_advisory(self, model: Any, column: str, bind: Any) -> str | None:
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} backend={self.name}>"
