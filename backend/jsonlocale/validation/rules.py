"""
Declarative validation rules for translated fields.

Options are parsed with pydantic when the rule is declared, so a bad option
fails at model definition time rather than during a later save.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from jsonlocale.core.exceptions import InvalidValidationRuleError
from jsonlocale.domain.schema import SchemaDescriptor

CustomValidator = Callable[[Any, str, str, Any], None]

VALID_OPTIONS = ("presence", "length", "format", "locales")


class LengthOptions(BaseModel):
    """Length bounds, in characters."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    minimum: int | None = Field(default=None, ge=0)
    maximum: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> LengthOptions:
        if self.minimum is None and self.maximum is None:
            raise ValueError("length requires minimum and/or maximum")
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise ValueError(f"length minimum {self.minimum} exceeds maximum {self.maximum}")
        return self


class FormatOptions(BaseModel):
    """Pattern the value must match (``re.search`` semantics)."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    with_: re.Pattern = Field(alias="with")

    @field_validator("with_", mode="before")
    @classmethod
    def _compile(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return re.compile(value)
            except re.error as e:
                raise ValueError(f"invalid pattern {value!r}: {e}") from e
        return value


class RuleOptions(BaseModel):
    """Parsed option bag of one ``validates_translation`` call."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    presence: bool = False
    length: LengthOptions | None = None
    format: FormatOptions | None = None

    @field_validator("format", mode="before")
    @classmethod
    def _wrap_pattern(cls, value: Any) -> Any:
        if isinstance(value, (str, re.Pattern)):
            return {"with": value}
        return value


@dataclass(frozen=True)
class ValidationRule:
    """Rule for one field over a set of locales (None = all declared)."""
    field: str
    options: RuleOptions
    locales: tuple[str, ...] | None = None
    custom: CustomValidator | None = None

    def resolved_locales(self, descriptor: SchemaDescriptor) -> tuple[str, ...]:
        return self.locales if self.locales is not None else descriptor.locales


def build_rules(
    descriptor: SchemaDescriptor,
    fields: tuple[Any, ...],
    options: Mapping[str, Any],
    custom: CustomValidator | None = None,
) -> list[ValidationRule]:
    """
    Check and parse a ``validates_translation`` declaration.

    Raises:
        UndefinedTranslatableFieldsError: A field was never declared translatable
        InvalidValidationRuleError: Unknown option key or malformed option value
        InvalidLocaleError: A locale was never declared
    """
    names = descriptor.check_fields(_flatten(fields))
    if not names:
        raise InvalidValidationRuleError("validates_translation requires at least one field")

    invalid = [key for key in options if key not in VALID_OPTIONS]
    if invalid:
        raise InvalidValidationRuleError(
            f"Invalid validation option(s): {', '.join(repr(k) for k in invalid)}. "
            f"Valid options are: {', '.join(repr(k) for k in VALID_OPTIONS)}",
            details={"options": invalid},
        )

    if custom is not None and not callable(custom):
        raise InvalidValidationRuleError("custom validator must be callable")

    rule_options = dict(options)
    locales = rule_options.pop("locales", None)
    if locales is not None:
        if isinstance(locales, str):
            locales = [locales]
        locales = descriptor.check_locales(locales)

    try:
        parsed = RuleOptions(**rule_options)
    except ValidationError as e:
        raise InvalidValidationRuleError(
            f"Invalid validation options for {descriptor.model_name}: {e}",
            details={"model": descriptor.model_name, "errors": e.errors(include_url=False)},
        ) from e

    return [
        ValidationRule(field=name, options=parsed, locales=locales, custom=custom)
        for name in names
    ]


def _flatten(fields: tuple[Any, ...]) -> list[Any]:
    flat: list[Any] = []
    for item in fields:
        if isinstance(item, (list, tuple, set, frozenset)):
            flat.extend(_flatten(tuple(item)))
        else:
            flat.append(item)
    return flat
