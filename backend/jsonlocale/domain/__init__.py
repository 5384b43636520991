"""
Domain Module - Declared schema and column normalization.
"""

from jsonlocale.domain.normalizer import is_normalized, normalize
from jsonlocale.domain.schema import SchemaDescriptor, SchemaRegistry, schema_registry

__all__ = [
    "SchemaDescriptor",
    "SchemaRegistry",
    "schema_registry",
    "is_normalized",
    "normalize",
]
