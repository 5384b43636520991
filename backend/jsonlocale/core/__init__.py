"""Core configuration and errors for jsonlocale."""

from jsonlocale.core.config import (
    JsonLocaleConfig,
    JsonLocaleSettings,
    configure,
    get_config,
    load_settings,
    reset_config,
    set_config,
)
from jsonlocale.core.exceptions import (
    ConfigurationError,
    DatabaseColumnConflictError,
    InvalidLocaleError,
    InvalidValidationRuleError,
    MissingTranslationsColumnError,
    JsonLocaleError,
    TranslationValidationError,
    UndefinedTranslatableFieldsError,
    UnsupportedBackendError,
    UnsupportedCapabilityError,
)

__all__ = [
    "JsonLocaleConfig",
    "JsonLocaleSettings",
    "configure",
    "get_config",
    "load_settings",
    "reset_config",
    "set_config",
    "ConfigurationError",
    "DatabaseColumnConflictError",
    "InvalidLocaleError",
    "InvalidValidationRuleError",
    "MissingTranslationsColumnError",
    "JsonLocaleError",
    "TranslationValidationError",
    "UndefinedTranslatableFieldsError",
    "UnsupportedBackendError",
    "UnsupportedCapabilityError",
]
