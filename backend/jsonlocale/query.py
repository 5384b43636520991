"""
Translation search predicates.

``where_translations`` turns a field -> value mapping into a SQL clause
over the structured column. Values are always bound parameters.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from sqlalchemy import ColumnElement, TextClause, false

from jsonlocale.domain.schema import SchemaDescriptor
from jsonlocale.strategies.base import MatchMode, Predicate, StorageStrategy


def build_predicate(
    descriptor: SchemaDescriptor,
    strategy: StorageStrategy,
    attributes: Mapping[str, Any],
    locales: Iterable[str] | None = None,
    case_sensitive: bool = False,
    match: MatchMode | None = None,
    qualify: bool = True,
) -> Predicate:
    """
    Build the predicate for a translation search.

    Args:
        descriptor: Declared schema of the model
        strategy: Strategy of the model's backend
        attributes: Field name -> searched value; empty matches nothing
        locales: Locales to search, all declared when None or empty
        case_sensitive: Exact matching instead of case-insensitive LIKE
        match: ``"all"`` fields must match within a locale, ``"any"``, or
            None for the strategy default (``"any"`` except for
            case-sensitive containment searches)
        qualify: Prefix the column with the (quoted) table name

    Returns:
        Predicate with positional parameters
    """
    if not attributes:
        return Predicate.never()

    attributes = {str(key): value for key, value in attributes.items()}
    fields = descriptor.check_fields(attributes)
    # an empty locale list searches every declared locale
    if isinstance(locales, str):
        locales = [locales]
    search_locales = descriptor.check_locales(list(locales or ()) or None)
    column = strategy.column_reference(
        descriptor.table_name if qualify else None,
        descriptor.column,
        descriptor.schema,
    )

    return strategy.build_predicate(
        column,
        {field: attributes[field] for field in fields},
        search_locales,
        case_sensitive=case_sensitive,
        match=match,
    )


def where_translations(
    descriptor: SchemaDescriptor,
    strategy: StorageStrategy,
    attributes: Mapping[str, Any],
    locales: Iterable[str] | None = None,
    case_sensitive: bool = False,
    match: MatchMode | None = None,
) -> ColumnElement[bool] | TextClause:
    """
    SQLAlchemy clause for a translation search.

    An empty ``attributes`` mapping yields ``false()`` on every backend,
    including those that cannot search at all.
    """
    if not attributes:
        return false()

    predicate = build_predicate(
        descriptor,
        strategy,
        attributes,
        locales=locales,
        case_sensitive=case_sensitive,
        match=match,
    )
    return predicate.to_clause()
