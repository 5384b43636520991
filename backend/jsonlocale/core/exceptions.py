"""
Exception hierarchy for jsonlocale.

Configuration errors are programmer errors raised at registration or first
use. Data problems found while validating a record are never raised from the
validators themselves; they are collected in ``TranslationErrors`` and only
surface as ``TranslationValidationError`` when a flush is attempted.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from jsonlocale.validation.errors import TranslationErrors


class ErrorCategory(str, Enum):
    """Error categories."""
    CONFIGURATION = "configuration"
    CAPABILITY = "capability"
    VALIDATION = "validation"


class JsonLocaleError(Exception):
    """Base exception for jsonlocale errors."""

    category: ErrorCategory = ErrorCategory.CONFIGURATION

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
        }


class ConfigurationError(JsonLocaleError):
    """Invalid or incomplete translatable configuration."""


class MissingTranslationsColumnError(ConfigurationError):
    """The structured column is absent or has the wrong physical type."""

    def __init__(
        self,
        message: str,
        model: str | None = None,
        column: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {}) or {}
        if model:
            details["model"] = model
        if column:
            details["column"] = column
        super().__init__(message, details=details, **kwargs)


class UndefinedTranslatableFieldsError(ConfigurationError):
    """No translatable fields were declared, or an undeclared field was used."""


class DatabaseColumnConflictError(ConfigurationError):
    """A translatable field has the same name as a real table column."""

    def __init__(self, message: str, columns: list[str] | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {}) or {}
        if columns:
            details["columns"] = list(columns)
        super().__init__(message, details=details, **kwargs)


class UnsupportedBackendError(ConfigurationError):
    """No storage strategy exists for the detected backend."""

    def __init__(self, backend: str, **kwargs: Any) -> None:
        details = kwargs.pop("details", {}) or {}
        details["backend"] = backend
        super().__init__(f"Unsupported database backend: {backend}", details=details, **kwargs)
        self.backend = backend


class InvalidValidationRuleError(ConfigurationError, ValueError):
    """A ``validates_translation`` call was given bad options."""


class InvalidLocaleError(ConfigurationError, ValueError):
    """A locale was used that the model never declared."""

    def __init__(self, message: str, locales: list[str] | None = None, **kwargs: Any) -> None:
        details = kwargs.pop("details", {}) or {}
        if locales:
            details["locales"] = list(locales)
        super().__init__(message, details=details, **kwargs)


class UnsupportedCapabilityError(JsonLocaleError, NotImplementedError):
    """The storage strategy cannot perform the requested operation."""

    category = ErrorCategory.CAPABILITY

    def __init__(self, strategy: str, capability: str, **kwargs: Any) -> None:
        details = kwargs.pop("details", {}) or {}
        details.update({"strategy": strategy, "capability": capability})
        super().__init__(
            f"{strategy} does not support {capability}",
            details=details,
            **kwargs,
        )
        self.strategy = strategy
        self.capability = capability


class TranslationValidationError(JsonLocaleError):
    """Raised on flush when a record's translations fail validation."""

    category = ErrorCategory.VALIDATION

    def __init__(self, model: str, errors: TranslationErrors) -> None:
        messages = errors.full_messages()
        super().__init__(
            f"Validation failed for {model}: {'; '.join(messages)}",
            details={"model": model, "errors": errors.to_dict()},
        )
        self.errors = errors
