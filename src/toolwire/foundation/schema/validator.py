"""Structural validation of JSON values against a StructuralSchema.

The validator checks shape only: kinds, enum membership, required members.
Length, range and pattern constraints are carried by the schema for the model's
benefit and enforced later, when the binder converts values to native types.

Errors are aggregated, never short-circuited, so a single report names every
offending path.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .schema import SchemaKind, StructuralSchema


class ErrorKind(StrEnum):
    TYPE_ERROR = "type_error"
    MISSING = "missing"


class SchemaValidationError(BaseModel):
    """One structural mismatch.

    ``parameter_name`` is the first segment of ``path``, i.e. the top-level
    argument that failed.
    """

    model_config = ConfigDict(frozen=True)

    parameter_name: str
    path: str
    message: str = Field(min_length=1)
    error_kind: ErrorKind

    @property
    def is_missing(self) -> bool:
        return self.error_kind is ErrorKind.MISSING

    def __str__(self) -> str:
        return f"{self.path or self.parameter_name}: {self.message}"


def _first_segment(path: str) -> str:
    for i, ch in enumerate(path):
        if ch in ".[":
            return path[:i]
    return path


def _error(path: str, message: str, kind: ErrorKind) -> SchemaValidationError:
    return SchemaValidationError(parameter_name=_first_segment(path), path=path, message=message, error_kind=kind)


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


# ─────────────────────────────────────────────────────────────────────────────
# Kind Checks
# ─────────────────────────────────────────────────────────────────────────────

def _matches_kind(kind: SchemaKind, value: Any) -> bool:
    # bool is an int subclass; JSON booleans never satisfy numeric kinds
    match kind:
        case SchemaKind.STRING:
            return isinstance(value, str)
        case SchemaKind.BOOLEAN:
            return isinstance(value, bool)
        case SchemaKind.INTEGER:
            return isinstance(value, int) and not isinstance(value, bool)
        case SchemaKind.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        case SchemaKind.ARRAY:
            return isinstance(value, (list, tuple))
        case SchemaKind.OBJECT:
            return isinstance(value, Mapping)
    return False


def _enum_matches(allowed: list[Any], value: Any) -> bool:
    return any(type(a) is type(value) and a == value for a in allowed) or (
        # 1 and 1.0 are the same JSON number
        not isinstance(value, bool) and isinstance(value, (int, float))
        and any(not isinstance(a, bool) and isinstance(a, (int, float)) and a == value for a in allowed)
    )


# ─────────────────────────────────────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────────────────────────────────────

def validate(
    schema: StructuralSchema,
    value: Any,
    path: str = "",
    *,
    required: bool = True,
) -> list[SchemaValidationError]:
    """Validate a JSON value against ``schema``.

    Args:
        schema: Node to check against
        value: Decoded JSON value (dict/list/str/int/float/bool/None)
        path: Location of ``value``; prefixes every reported path
        required: Whether absence (None) at this position is an error

    Returns:
        Every mismatch found, in document order. Empty means valid.

    Example:
        >>> s = StructuralSchema(kind="object",
        ...     properties={"a": StructuralSchema(kind="integer")}, required=["a"])
        >>> [(e.path, e.error_kind) for e in validate(s, {"a": "x"})]
        [('a', 'type_error')]
    """
    errors: list[SchemaValidationError] = []
    _validate(schema, value, path, required, errors)
    return errors


def _validate(
    schema: StructuralSchema,
    value: Any,
    path: str,
    required: bool,
    errors: list[SchemaValidationError],
) -> None:
    if value is None:
        if required and not schema.nullable:
            errors.append(_error(path, "Value is required.", ErrorKind.MISSING))
        return

    if not _matches_kind(schema.kind, value):
        errors.append(_error(path, f"Expected {schema.kind.value}", ErrorKind.TYPE_ERROR))
        return

    if schema.enum_values is not None and not _enum_matches(schema.enum_values, value):
        allowed = ", ".join(str(v) for v in schema.enum_values)
        errors.append(_error(path, f"Expected one of: {allowed}", ErrorKind.TYPE_ERROR))
        return

    if schema.kind not in (SchemaKind.ARRAY, SchemaKind.OBJECT):
        return

    if schema.kind is SchemaKind.ARRAY:
        if schema.items is not None:
            for index, element in enumerate(value):
                _validate(schema.items, element, f"{path}[{index}]", True, errors)
        return

    _validate_object(schema, value, path, errors)


def _validate_object(
    schema: StructuralSchema,
    value: Mapping[str, Any],
    path: str,
    errors: list[SchemaValidationError],
) -> None:
    declared = schema.properties or {}
    for name, child in declared.items():
        child_path = _join(path, name)
        if name in value:
            _validate(child, value[name], child_path, schema.is_required(name), errors)
        elif schema.is_required(name):
            errors.append(_error(child_path, f"Missing required field '{name}'", ErrorKind.MISSING))

    # Map-shaped objects: undeclared keys validated against the value schema
    if isinstance(extra := schema.additional_properties, StructuralSchema):
        for key, item in value.items():
            if key not in declared:
                _validate(extra, item, _join(path, str(key)), True, errors)
