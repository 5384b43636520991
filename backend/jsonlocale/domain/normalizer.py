"""Shape normalization for the structured translations column."""

from __future__ import annotations

from typing import Any, Mapping

from jsonlocale.domain.schema import SchemaDescriptor

TranslationData = dict[str, Any]


def normalize(data: Mapping[str, Any] | None, descriptor: SchemaDescriptor) -> TranslationData:
    """
    Fill in every declared locale and field, defaulting to None.

    Unknown locales and fields are kept so that structural validation can
    report them. Existing values are never replaced, and a locale whose value
    is not a mapping is left as is. The input is not mutated.

    Args:
        data: Stored column value (None is treated as empty)
        descriptor: Declared schema of the model

    Returns:
        A new, normalized mapping
    """
    result: TranslationData = {}
    for locale, fields in (data or {}).items():
        result[str(locale)] = dict(fields) if isinstance(fields, Mapping) else fields

    for locale in descriptor.locales:
        fields = result.get(locale)
        if fields is None:
            fields = result[locale] = {}
        elif not isinstance(fields, dict):
            continue
        for field in descriptor.fields:
            fields.setdefault(field, None)

    return result


def is_normalized(data: Mapping[str, Any] | None, descriptor: SchemaDescriptor) -> bool:
    """True when every declared locale/field key is already present."""
    if not data:
        return not descriptor.locales
    for locale in descriptor.locales:
        fields = data.get(locale)
        if not isinstance(fields, Mapping):
            return False
        if any(field not in fields for field in descriptor.fields):
            return False
    return True
