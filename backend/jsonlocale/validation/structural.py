"""Reject undeclared locales and fields in the stored mapping."""

from __future__ import annotations

from typing import Any, Mapping

from jsonlocale.domain.schema import SchemaDescriptor
from jsonlocale.validation.errors import TranslationErrors


def validate_structure(
    data: Mapping[str, Any] | None,
    descriptor: SchemaDescriptor,
    errors: TranslationErrors,
) -> int:
    """
    Record every unexpected locale or field key.

    Returns the number of errors recorded.
    """
    if not data:
        return 0

    column = descriptor.column
    before = len(errors)
    for locale, fields in data.items():
        if not descriptor.has_locale(locale):
            errors.add(column, "invalid_locale", locale=locale)

        if fields is None:
            continue
        if not isinstance(fields, Mapping):
            errors.add(column, "invalid_locale_value", locale=locale)
            continue

        for field in fields:
            if not descriptor.has_field(field):
                errors.add(column, "invalid_field", field=field, locale=locale)

    return len(errors) - before
