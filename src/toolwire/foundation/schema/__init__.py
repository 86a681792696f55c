"""Structural schemas: generation from Python types and JSON validation.

- StructuralSchema / SchemaKind: the schema node model and its JSON-Schema export
- TypeSchemaEngine / schema_for: type annotation -> schema, memoized per type
- validate / SchemaValidationError: aggregate structural validation of JSON values
"""

from .engine import (
    TypeSchemaEngine,
    apply_metadata,
    clear_schema_cache,
    get_schema_engine,
    is_simple_type,
    json_default,
    reset_schema_engine,
    schema_for,
    unwrap_type,
)
from .schema import SchemaKind, StructuralSchema
from .validator import ErrorKind, SchemaValidationError, validate

__all__ = [
    # Model
    "SchemaKind", "StructuralSchema",
    # Engine
    "TypeSchemaEngine", "schema_for", "get_schema_engine", "reset_schema_engine", "clear_schema_cache",
    "is_simple_type", "unwrap_type", "apply_metadata", "json_default",
    # Validation
    "validate", "SchemaValidationError", "ErrorKind",
]
