"""Structural schema: the JSON-Schema-like description of a type.

StructuralSchema is the single representation shared by the schema engine
(which builds it from Python types), the validator (which checks JSON against
it) and the registry (which exports it for provider adapters). Field names are
Pythonic; JSON-Schema spellings are the aliases used on export.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from toolwire.foundation.errors import JsonDict


class SchemaKind(StrEnum):
    """Node kinds. Enumerations are STRING nodes carrying enum_values."""
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"


class StructuralSchema(BaseModel):
    """Recursive schema node.

    Invariants (checked on construction):
    - ``required`` names only declared ``properties``
    - ``array`` nodes always carry ``items``

    Example:
        >>> StructuralSchema(kind="object",
        ...     properties={"city": StructuralSchema(kind="string")},
        ...     required=["city"]).to_json_schema()
        {'type': 'object', 'properties': {'city': {'type': 'string'}}, 'required': ['city']}
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    kind: SchemaKind = Field(alias="type")
    description: str | None = None
    properties: dict[str, StructuralSchema] | None = None
    required: list[str] = Field(default_factory=list)
    items: StructuralSchema | None = None
    additional_properties: bool | StructuralSchema | None = Field(default=None, alias="additionalProperties")
    enum_values: list[str | int | float | bool] | None = Field(default=None, alias="enum")
    format: str | None = None
    min_length: int | None = Field(default=None, alias="minLength")
    max_length: int | None = Field(default=None, alias="maxLength")
    minimum: int | float | None = None
    maximum: int | float | None = None
    exclusive_minimum: int | float | None = Field(default=None, alias="exclusiveMinimum")
    exclusive_maximum: int | float | None = Field(default=None, alias="exclusiveMaximum")
    pattern: str | None = None
    default: Any = None
    nullable: bool | None = None

    @model_validator(mode="after")
    def _check_invariants(self) -> StructuralSchema:
        if self.kind is SchemaKind.ARRAY and self.items is None:
            raise ValueError("array schema requires 'items'")
        if self.required:
            declared = self.properties or {}
            if unknown := [name for name in self.required if name not in declared]:
                raise ValueError(f"required names not declared in properties: {', '.join(unknown)}")
            # Keep first occurrence order, drop duplicates
            self.required = list(dict.fromkeys(self.required))
        return self

    # ─────────────────────────────────────────────────────────────────
    # Convenience
    # ─────────────────────────────────────────────────────────────────

    @property
    def is_enum(self) -> bool:
        return self.enum_values is not None

    @property
    def is_opaque(self) -> bool:
        """Object node with no declared shape (cycle fallback, Any, unknown types)."""
        return (
            self.kind is SchemaKind.OBJECT
            and not self.properties
            and not isinstance(self.additional_properties, StructuralSchema)
        )

    def property_names(self) -> list[str]:
        return list(self.properties or ())

    def is_required(self, name: str) -> bool:
        return name in self.required

    # ─────────────────────────────────────────────────────────────────
    # Import / Export
    # ─────────────────────────────────────────────────────────────────

    def to_json_schema(self) -> JsonDict:
        """Export using JSON-Schema key names, omitting unset members."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        return _drop_empty_required(data)

    @classmethod
    def from_json_schema(cls, data: JsonDict) -> StructuralSchema:
        """Parse a JSON-Schema-shaped dict (as produced by to_json_schema)."""
        return cls.model_validate(data)


def _drop_empty_required(node: JsonDict) -> JsonDict:
    """Strip empty ``required`` lists from schema nodes, leaving ``default`` values untouched."""
    if node.get("required") == []:
        del node["required"]
    if isinstance(props := node.get("properties"), dict):
        node["properties"] = {name: _drop_empty_required(child) for name, child in props.items()}
    for key in ("items", "additionalProperties"):
        if isinstance(child := node.get(key), dict):
            node[key] = _drop_empty_required(child)
    return node
