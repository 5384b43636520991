"""
Schema descriptors for translatable models.

A descriptor captures what a model declared through ``translatable()``: the
translated field names, the locale set and the structured column. It is
created once per model and never changes afterwards.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Hashable, Iterable

from jsonlocale.core.exceptions import (
    InvalidLocaleError,
    UndefinedTranslatableFieldsError,
)


def _unique(values: Iterable[object]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(str(value), None)
    return tuple(seen)


@dataclass(frozen=True)
class SchemaDescriptor:
    """Declared translatable schema of one model."""
    model_name: str
    table_name: str
    fields: tuple[str, ...]
    locales: tuple[str, ...]
    column: str = "translations"
    backend: str = ""
    schema: str | None = None

    _field_set: frozenset[str] = field(init=False, repr=False, compare=False)
    _locale_set: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", _unique(self.fields))
        object.__setattr__(self, "locales", _unique(self.locales))
        object.__setattr__(self, "_field_set", frozenset(self.fields))
        object.__setattr__(self, "_locale_set", frozenset(self.locales))

    def has_field(self, name: object) -> bool:
        return str(name) in self._field_set

    def has_locale(self, locale: object) -> bool:
        return str(locale) in self._locale_set

    def check_fields(self, names: Iterable[object]) -> tuple[str, ...]:
        """Return ``names`` as strings, raising for any undeclared field."""
        names = _unique(names)
        unknown = [name for name in names if name not in self._field_set]
        if unknown:
            raise UndefinedTranslatableFieldsError(
                f"Field(s) {', '.join(repr(n) for n in unknown)} not defined as translatable "
                f"on {self.model_name}. Available translatable fields: "
                f"{', '.join(repr(f) for f in self.fields)}",
                details={"model": self.model_name, "fields": unknown},
            )
        return names

    def check_locales(self, locales: Iterable[object] | None) -> tuple[str, ...]:
        """Return ``locales`` as strings (all declared when None), raising for unknown ones."""
        if locales is None:
            return self.locales
        locales = _unique(locales)
        unknown = [locale for locale in locales if locale not in self._locale_set]
        if unknown:
            raise InvalidLocaleError(
                f"Invalid locale(s): {', '.join(repr(l) for l in unknown)}. "
                f"Available locales: {', '.join(repr(l) for l in self.locales)}",
                locales=unknown,
            )
        return locales

    def permit_list(self) -> dict[str, dict[str, list[str]]]:
        """Allowed nested parameter shape, for request-parameter filtering."""
        return {self.column: {locale: list(self.fields) for locale in self.locales}}


class SchemaRegistry:
    """
    Descriptors keyed by model class.

    Two models that share a class name (different modules or declarative
    bases) get separate entries.
    """

    def __init__(self) -> None:
        self._descriptors: dict[Hashable, SchemaDescriptor] = {}
        self._lock = threading.Lock()

    def register(self, model: Hashable, descriptor: SchemaDescriptor) -> SchemaDescriptor:
        with self._lock:
            self._descriptors[model] = descriptor
        return descriptor

    def get(self, model: Hashable) -> SchemaDescriptor | None:
        return self._descriptors.get(model)

    def get_or_raise(self, model: Hashable) -> SchemaDescriptor:
        descriptor = self._descriptors.get(model)
        if descriptor is None:
            model_name = getattr(model, "__name__", str(model))
            raise UndefinedTranslatableFieldsError(
                f"Model {model_name} must call `translatable` with field names. Example:\n"
                f"    {model_name}.translatable(\"title\", \"content\")",
                details={"model": model_name},
            )
        return descriptor

    def exists(self, model: Hashable) -> bool:
        return model in self._descriptors

    def list_all(self) -> list[SchemaDescriptor]:
        return list(self._descriptors.values())

    def clear(self) -> None:
        with self._lock:
            self._descriptors.clear()


schema_registry = SchemaRegistry()
