"""
Validation Module.

Provides:
- errors: per-record error collection
- rules: declarative rule parsing
- structural: undeclared locale/field detection
- fields: presence, length, format and custom checks
"""

from jsonlocale.validation.errors import TranslationError, TranslationErrors
from jsonlocale.validation.fields import is_blank, validate_fields
from jsonlocale.validation.rules import (
    FormatOptions,
    LengthOptions,
    RuleOptions,
    ValidationRule,
    build_rules,
)
from jsonlocale.validation.structural import validate_structure

__all__ = [
    "TranslationError",
    "TranslationErrors",
    "is_blank",
    "validate_fields",
    "FormatOptions",
    "LengthOptions",
    "RuleOptions",
    "ValidationRule",
    "build_rules",
    "validate_structure",
]
