"""Per-record collection of translation validation errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

DEFAULT_MESSAGES = {
    "blank": "can't be blank",
    "too_short": "is too short (minimum is {count} characters)",
    "too_long": "is too long (maximum is {count} characters)",
    "invalid": "is invalid",
    "invalid_locale": "contains invalid locale: {locale}",
    "invalid_field": "contains invalid field: {field} for locale {locale}",
    "invalid_locale_value": "contains a non-mapping value for locale {locale}",
}


@dataclass(frozen=True)
class TranslationError:
    """One recorded validation failure."""
    attribute: str
    code: str
    message: str
    translation_key: str | None = None
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.translation_key or self.attribute

    def full_message(self) -> str:
        return f"{self.key} {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "attribute": self.attribute,
            "code": self.code,
            "message": self.message,
            "translation_key": self.translation_key,
            "options": dict(self.options),
        }


class TranslationErrors:
    """
    Ordered error list keyed by column name or ``column.locale.field``.

    Validators append to it; nothing here raises.
    """

    def __init__(self) -> None:
        self._errors: list[TranslationError] = []

    def add(
        self,
        attribute: str,
        code: str,
        translation_key: str | None = None,
        message: str | None = None,
        **options: Any,
    ) -> TranslationError:
        if message is None:
            template = DEFAULT_MESSAGES.get(code, code.replace("_", " "))
            try:
                message = template.format(**options)
            except (KeyError, IndexError):
                message = template
        error = TranslationError(
            attribute=attribute,
            code=code,
            message=message,
            translation_key=translation_key,
            options=options,
        )
        self._errors.append(error)
        return error

    def on(self, key: str) -> list[TranslationError]:
        """Errors whose attribute or translation key equals ``key``."""
        return [e for e in self._errors if key in (e.attribute, e.translation_key)]

    def codes(self, key: str | None = None) -> list[str]:
        errors = self._errors if key is None else self.on(key)
        return [e.code for e in errors]

    def full_messages(self) -> list[str]:
        return [e.full_message() for e in self._errors]

    def to_dict(self) -> dict[str, list[str]]:
        result: dict[str, list[str]] = {}
        for error in self._errors:
            result.setdefault(error.key, []).append(error.message)
        return result

    def clear(self) -> None:
        self._errors.clear()

    def __iter__(self) -> Iterator[TranslationError]:
        return iter(list(self._errors))

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __repr__(self) -> str:
        return f"<TranslationErrors {self.full_messages()!r}>"
