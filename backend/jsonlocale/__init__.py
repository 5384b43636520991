"""
jsonlocale - translated fields in one structured column for SQLAlchemy models.

Provides:
- TranslatableMixin: registration, validation, views and search on models
- Storage strategies for PostgreSQL (JSONB), MySQL (JSON) and SQLite
- Configuration via environment, YAML or configure()
"""

from jsonlocale.core.config import (
    JsonLocaleConfig,
    JsonLocaleSettings,
    configure,
    get_config,
    load_settings,
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
from jsonlocale.domain import SchemaDescriptor, normalize, schema_registry
from jsonlocale.mixin import TranslatableMixin, translatable
from jsonlocale.query import build_predicate, where_translations
from jsonlocale.strategies import (
    JSONText,
    MySQLStrategy,
    PostgreSQLStrategy,
    Predicate,
    SQLiteStrategy,
    SQLiteTextStrategy,
    StorageStrategy,
    strategy_for_backend,
)
from jsonlocale.validation import TranslationErrors, ValidationRule
from jsonlocale.views import TranslationView, ViewGenerator, view_generator

__version__ = "0.1.0"

__all__ = [
    "JsonLocaleConfig",
    "JsonLocaleSettings",
    "configure",
    "get_config",
    "load_settings",
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
    "SchemaDescriptor",
    "normalize",
    "schema_registry",
    "TranslatableMixin",
    "translatable",
    "build_predicate",
    "where_translations",
    "JSONText",
    "MySQLStrategy",
    "PostgreSQLStrategy",
    "Predicate",
    "SQLiteStrategy",
    "SQLiteTextStrategy",
    "StorageStrategy",
    "strategy_for_backend",
    "TranslationErrors",
    "ValidationRule",
    "TranslationView",
    "ViewGenerator",
    "view_generator",
]
