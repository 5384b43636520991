"""Run declared per-field, per-locale rules against the stored mapping."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from jsonlocale.domain.schema import SchemaDescriptor
from jsonlocale.validation.errors import TranslationErrors
from jsonlocale.validation.rules import ValidationRule


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False


def lookup(data: Mapping[str, Any] | None, locale: str, field: str) -> Any:
    fields = (data or {}).get(locale)
    if not isinstance(fields, Mapping):
        return None
    return fields.get(field)


def validate_fields(
    record: Any,
    data: Mapping[str, Any] | None,
    rules: Iterable[ValidationRule],
    descriptor: SchemaDescriptor,
    errors: TranslationErrors,
) -> int:
    """
    Apply every rule to every locale it covers.

    Checks run in order: custom validator, presence, length, format. Length
    and format are skipped for blank values. Nothing short-circuits.

    Args:
        record: Model instance handed to custom validators
        data: Normalized translations mapping
        rules: Rules in declaration order
        descriptor: Declared schema of the model
        errors: Collection the failures are appended to

    Returns:
        Number of errors recorded (including any added by custom validators)
    """
    column = descriptor.column
    before = len(errors)

    for rule in rules:
        options = rule.options
        for locale in rule.resolved_locales(descriptor):
            value = lookup(data, locale, rule.field)
            error_key = f"{column}.{locale}.{rule.field}"

            if rule.custom is not None:
                rule.custom(record, locale, rule.field, value)

            blank = is_blank(value)
            if options.presence and blank:
                errors.add(column, "blank", translation_key=error_key)

            if blank:
                continue

            if options.length is not None:
                length = len(str(value))
                minimum = options.length.minimum
                maximum = options.length.maximum
                if minimum is not None and length < minimum:
                    errors.add(column, "too_short", translation_key=error_key, count=minimum)
                if maximum is not None and length > maximum:
                    errors.add(column, "too_long", translation_key=error_key, count=maximum)

            if options.format is not None and not options.format.with_.search(str(value)):
                errors.add(column, "invalid", translation_key=error_key)

    return len(errors) - before
