"""
Read-only per-locale translation views.

Each translatable model gets one view class, built on first use and cached
by model class. The class is a ``TranslationView`` subclass with one
read-only property per declared field.
"""

from __future__ import annotations

import threading
from typing import Any, ClassVar, Hashable, Iterator, Mapping

from jsonlocale.infrastructure.logging import get_logger
from jsonlocale.validation.fields import is_blank, lookup

logger = get_logger(__name__)

REPR_VALUE_WIDTH = 30


class TranslationView:
    """Fields of one record in one locale."""

    __slots__ = ("_values", "_locale")

    fields: ClassVar[tuple[str, ...]] = ()
    model_name: ClassVar[str] = ""

    def __init__(self, values: Mapping[str, Any], locale: str):
        object.__setattr__(self, "_values", {field: values.get(field) for field in self.fields})
        object.__setattr__(self, "_locale", str(locale))

    @classmethod
    def from_translations(cls, data: Mapping[str, Any] | None, locale: str) -> TranslationView:
        """Build a view from a whole translations mapping."""
        locale = str(locale)
        return cls({field: lookup(data, locale, field) for field in cls.fields}, locale)

    @property
    def locale(self) -> str:
        return self._locale

    @property
    def size(self) -> int:
        return len(self.fields)

    def keys(self) -> list[str]:
        return list(self.fields)

    def values(self) -> list[Any]:
        return [self._values[field] for field in self.fields]

    def items(self) -> list[tuple[str, Any]]:
        return [(field, self._values[field]) for field in self.fields]

    def get(self, field: str, default: Any = None) -> Any:
        value = self._values.get(str(field))
        return default if value is None else value

    def is_empty(self) -> bool:
        return all(is_blank(value) for value in self._values.values())

    def to_dict(self) -> dict[str, Any]:
        return {**self._values, "locale": self._locale}

    def __getitem__(self, key: str) -> Any:
        key = str(key)
        if key == "locale":
            return self._locale
        if key not in self._values:
            raise KeyError(key)
        return self._values[key]

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TranslationView):
            return NotImplemented
        return (
            type(self) is type(other)
            and self._locale == other._locale
            and self._values == other._values
        )

    def __hash__(self) -> int:
        return hash((type(self), self._locale, tuple(self.values())))

    def __repr__(self) -> str:
        parts = [f"{field}: {repr(value)[:REPR_VALUE_WIDTH]}" for field, value in self.items()]
        parts.append(f"locale: {self._locale!r}")
        return f"<{type(self).__name__} {', '.join(parts)}>"

    __str__ = __repr__


RESERVED_FIELD_NAMES = frozenset(
    name for name in dir(TranslationView) if not name.startswith("__")
) | {"locale"}


def _model_name(model: Hashable) -> str:
    return model.__name__ if isinstance(model, type) else str(model)


def _field_property(field: str) -> property:
    def getter(self: TranslationView) -> Any:
        return self._values[field]

    getter.__name__ = field
    return property(getter, doc=f"Translated value of {field!r}")


class ViewGenerator:
    """
    Builds and caches one view class per model.

    Keys are model classes (or plain names); the generated class is named
    after the model.
    """

    def __init__(self) -> None:
        self._types: dict[Hashable, type[TranslationView]] = {}
        self._lock = threading.Lock()

    def view_type_for(self, model: Hashable, fields: tuple[str, ...]) -> type[TranslationView]:
        view_type = self._types.get(model)
        if view_type is not None:
            return view_type

        with self._lock:
            view_type = self._types.get(model)
            if view_type is None:
                view_type = self._build(_model_name(model), fields)
                self._types[model] = view_type
        return view_type

    def translation_for(
        self,
        model: Hashable,
        fields: tuple[str, ...],
        data: Mapping[str, Any] | None,
        locale: str,
    ) -> TranslationView:
        return self.view_type_for(model, fields).from_translations(data, locale)

    def forget(self, model: Hashable) -> None:
        with self._lock:
            self._types.pop(model, None)

    def clear(self) -> None:
        with self._lock:
            self._types.clear()

    def __contains__(self, model: object) -> bool:
        return model in self._types

    @staticmethod
    def _build(model_name: str, fields: tuple[str, ...]) -> type[TranslationView]:
        namespace: dict[str, Any] = {
            "__slots__": (),
            "__module__": __name__,
            "fields": tuple(fields),
            "model_name": model_name,
        }
        for field in fields:
            namespace[field] = _field_property(field)

        view_type = type(f"{model_name}Translation", (TranslationView,), namespace)
        logger.debug(f"Generated view type {view_type.__name__}", context={"fields": list(fields)})
        return view_type


view_generator = ViewGenerator()
