"""Core data model: tool definitions, calls and results.

ToolDefinition and ParameterDescriptor are built once, at registration, and
never mutated afterwards. ToolCall and ToolResult are per-invocation values;
nothing in the core retains them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Self
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from toolwire.foundation.errors import JsonDict, ToolError
from toolwire.foundation.schema import StructuralSchema

if TYPE_CHECKING:
    from toolwire.foundation.errors import ToolException


def _new_call_id() -> str:
    return uuid4().hex


# ─────────────────────────────────────────────────────────────────────────────
# Definitions
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class ParameterDescriptor:
    """Static description of one callable parameter.

    Attributes:
        name: Parameter name (the JSON argument key)
        annotation: Resolved type annotation (``Annotated`` metadata kept)
        schema: Structural schema for the parameter, description included
        has_default: Whether the signature supplies a default
        default: The default value (None when has_default is False)
        is_cancellation_slot: Filled with the pipeline's token, never from JSON
        required: No default and not Optional
        adapter: JSON -> native converter (None for the cancellation slot)
    """
    name: str
    annotation: Any
    schema: StructuralSchema
    has_default: bool = False
    default: Any = None
    is_cancellation_slot: bool = False
    required: bool = True
    adapter: TypeAdapter[Any] | None = None

    @property
    def description(self) -> str:
        return self.schema.description or self.name


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """A registered tool: name, description, parameter schema and the callable.

    Example:
        >>> str(definition)
        'weather.get_forecast(city, days) => Get the forecast for a city'
    """
    name: str
    description: str
    parameter_schema: StructuralSchema
    function: Callable[..., Any]
    parameters: tuple[ParameterDescriptor, ...] = ()
    return_type: Any = None
    owner: str = ""

    @property
    def key(self) -> str:
        """Case-insensitive registry key."""
        return self.name.casefold()

    @property
    def argument_parameters(self) -> tuple[ParameterDescriptor, ...]:
        """Parameters filled from call arguments (cancellation slots excluded)."""
        return tuple(p for p in self.parameters if not p.is_cancellation_slot)

    def to_dict(self) -> JsonDict:
        """Provider-neutral export: name, description and JSON schema."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameter_schema.to_json_schema(),
        }

    def __str__(self) -> str:
        args = ", ".join(p.name for p in self.argument_parameters)
        return f"{self.name}({args}) => {self.description}" if self.description else f"{self.name}({args})"


# ─────────────────────────────────────────────────────────────────────────────
# Calls & Results
# ─────────────────────────────────────────────────────────────────────────────

class ToolCall(BaseModel):
    """A request to invoke a tool.

    Example:
        >>> call = ToolCall(id="c1", name="add", arguments={"a": 1, "b": 2})
        >>> str(call)
        "Name: 'add' (id: c1) with Arguments: [a: 1, b: 2]"
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_call_id, min_length=1)
    name: str = Field(min_length=1)
    arguments: JsonDict = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _default_blank_id(cls, v: object) -> object:
        return _new_call_id() if v is None else v

    @field_validator("name")
    @classmethod
    def _reject_blank_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Tool name is required.")
        return v

    @field_validator("arguments", mode="before")
    @classmethod
    def _none_is_empty(cls, v: object) -> object:
        return {} if v is None else v

    def normalized_arguments(self) -> str:
        """Canonical JSON text of the arguments (stable across key order and spacing)."""
        from toolwire.runtime.canonical import canonicalize
        return canonicalize(self.arguments)

    def dedup_key(self) -> str:
        """Key under which logically equivalent calls collide."""
        return f"{self.name.casefold()}:{self.normalized_arguments()}"

    def __str__(self) -> str:
        args = ", ".join(f"{k}: {v}" for k, v in self.arguments.items()) or "none"
        return f"Name: '{self.name}' (id: {self.id}) with Arguments: [{args}]"


class ToolResult(BaseModel):
    """Outcome of exactly one ToolCall.

    ``error`` carries the structured failure and is set iff ``is_error``.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    output: str
    is_error: bool = False
    error: ToolError | None = None

    @model_validator(mode="after")
    def _error_iff_is_error(self) -> Self:
        if self.is_error != (self.error is not None):
            raise ValueError("'error' must be set exactly when 'is_error' is true")
        return self

    @classmethod
    def ok(cls, call_id: str, output: str) -> Self:
        return cls(id=call_id, output=output)

    @classmethod
    def failure(cls, call_id: str, exc: ToolException) -> Self:
        """Error result carrying the exception's LLM-facing message."""
        error = exc.to_error()
        return cls(id=call_id, output=error.message, is_error=True, error=error)

    def __str__(self) -> str:
        return f"[{self.id}] {'error: ' if self.is_error else ''}{self.output}"
