"""Callable reflection: signature -> ParameterDescriptors + parameter schema.

Everything that can go wrong with a callable's types goes wrong here, at
registration, as a RegistrationError. A callable that passes reflection can
always be bound and invoked with JSON arguments.
"""

from __future__ import annotations

import collections.abc as cabc
import inspect
import typing
from dataclasses import dataclass
from typing import Any, Callable, ParamSpec, TypeVar, get_args, get_origin, get_type_hints

from pydantic import TypeAdapter
from pydantic.errors import PydanticSchemaGenerationError, PydanticUserError
from pydantic.fields import FieldInfo

from toolwire.foundation.core import CancellationToken, ParameterDescriptor, ToolMarker, parse_docstring_params
from toolwire.foundation.errors import RegistrationError
from toolwire.foundation.schema import (
    SchemaKind,
    StructuralSchema,
    TypeSchemaEngine,
    get_schema_engine,
    is_simple_type,
    json_default,
    unwrap_type,
)

_OPEN_GENERICS = (TypeVar, ParamSpec, typing.TypeVarTuple)
_CALLABLE_ORIGINS: frozenset[object] = frozenset({cabc.Callable, typing.Callable})
_REJECTED_KINDS = {
    inspect.Parameter.VAR_POSITIONAL: "*args",
    inspect.Parameter.VAR_KEYWORD: "**kwargs",
}


@dataclass(frozen=True, slots=True)
class Signature:
    """Reflected view of a callable."""
    parameters: tuple[ParameterDescriptor, ...]
    return_type: Any
    schema: StructuralSchema


def reflect(
    func: Callable[..., Any],
    *,
    tool_name: str,
    marker: ToolMarker | None = None,
    engine: TypeSchemaEngine | None = None,
) -> Signature:
    """Derive parameter descriptors, return type and root schema for ``func``.

    Raises:
        RegistrationError: The signature cannot be bridged to JSON
    """
    if not callable(func):
        raise RegistrationError(f"Cannot register '{tool_name}': {type(func).__name__} object is not callable.", tool_name=tool_name)
    engine = engine if engine is not None else get_schema_engine()

    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError) as e:
        raise RegistrationError(f"Cannot register '{tool_name}': signature is not inspectable ({e}).", tool_name=tool_name) from e

    if inspect.isroutine(func):
        hint_source = func
    elif inspect.isclass(func):
        hint_source = func.__init__
    else:
        hint_source = type(func).__call__
    try:
        hints = get_type_hints(hint_source, include_extras=True)
    except Exception as e:  # noqa: BLE001 - get_type_hints raises arbitrary errors on bad annotations
        raise RegistrationError(f"Cannot register '{tool_name}': annotations cannot be resolved ({e}).", tool_name=tool_name) from e

    docs = parse_docstring_params(inspect.getdoc(func))
    marked = dict(marker.params) if marker else {}

    descriptors: list[ParameterDescriptor] = []
    for param in sig.parameters.values():
        if (shape := _REJECTED_KINDS.get(param.kind)) is not None:
            raise RegistrationError(
                f"Cannot register '{tool_name}': parameter '{param.name}' uses {shape}, which cannot be bound by name.",
                tool_name=tool_name,
            )
        annotation = hints[param.name] if param.name in hints else _implied_annotation(param)
        descriptors.append(_describe(param, annotation, tool_name, engine, marked.get(param.name), docs.get(param.name)))

    return_type = hints.get("return", Any)
    if problem := _open_generic(return_type):
        raise RegistrationError(f"Cannot register '{tool_name}': return type {problem}.", tool_name=tool_name)

    return Signature(
        parameters=tuple(descriptors),
        return_type=return_type,
        schema=_root_schema(descriptors, engine),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Parameters
# ─────────────────────────────────────────────────────────────────────────────

def _describe(
    param: inspect.Parameter,
    annotation: Any,
    tool_name: str,
    engine: TypeSchemaEngine,
    marked: str | None,
    documented: str | None,
) -> ParameterDescriptor:
    bare, metadata, nullable = unwrap_type(annotation)
    has_default = param.default is not inspect.Parameter.empty
    default = param.default if has_default else None

    if bare is CancellationToken:
        return ParameterDescriptor(
            name=param.name,
            annotation=annotation,
            schema=StructuralSchema(kind=SchemaKind.OBJECT, description=param.name),
            has_default=has_default,
            default=default,
            is_cancellation_slot=True,
            required=False,
        )

    if problem := _unbridgeable(annotation):
        raise RegistrationError(f"Cannot register '{tool_name}': parameter '{param.name}' {problem}.", tool_name=tool_name)

    try:
        adapter: TypeAdapter[Any] = TypeAdapter(annotation)
    except (PydanticSchemaGenerationError, PydanticUserError, TypeError, NameError) as e:
        raise RegistrationError(
            f"Cannot register '{tool_name}': parameter '{param.name}' has no JSON conversion ({_type_name(annotation)}).",
            tool_name=tool_name,
        ) from e

    schema = engine.schema_for(annotation)
    schema.description = marked or _annotated_description(metadata) or documented or param.name
    if has_default and (exported := json_default(default)) is not None:
        schema.default = exported

    return ParameterDescriptor(
        name=param.name,
        annotation=annotation,
        schema=schema,
        has_default=has_default,
        default=default,
        required=not (has_default or nullable),
        adapter=adapter,
    )


def _implied_annotation(param: inspect.Parameter) -> Any:
    """Unannotated parameters take the type of a scalar default, else str."""
    default = param.default
    if default is not inspect.Parameter.empty and default is not None and is_simple_type(type(default)):
        return type(default)
    return str


def _annotated_description(metadata: list[object]) -> str | None:
    for item in reversed(metadata):
        if isinstance(item, FieldInfo) and item.description:
            return item.description
        if isinstance(item, str) and item.strip():
            return item
    return None


def _root_schema(descriptors: list[ParameterDescriptor], engine: TypeSchemaEngine) -> StructuralSchema:
    bindable = [d for d in descriptors if not d.is_cancellation_slot]
    return StructuralSchema(
        kind=SchemaKind.OBJECT,
        properties={d.name: d.schema.model_copy(deep=True) for d in bindable},
        required=[d.name for d in bindable if d.required],
        additional_properties=engine.additional_properties,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Bridgeability
# ─────────────────────────────────────────────────────────────────────────────

def _open_generic(tp: Any) -> str | None:
    if isinstance(tp, _OPEN_GENERICS):
        return f"uses open generic parameter '{tp}'"
    for arg in get_args(tp):
        if isinstance(arg, list):
            arg = tuple(arg)
        for inner in arg if isinstance(arg, tuple) else (arg,):
            if (problem := _open_generic(inner)) is not None:
                return problem
    return None


def _unbridgeable(tp: Any) -> str | None:
    """Why ``tp`` cannot cross the JSON boundary, or None if it can."""
    if problem := _open_generic(tp):
        return problem
    if tp is typing.Callable or tp is cabc.Callable or get_origin(tp) in _CALLABLE_ORIGINS:
        return "is callable-typed"
    for arg in get_args(tp):
        if (problem := _unbridgeable(arg)) is not None:
            return problem
    return None


def _type_name(tp: Any) -> str:
    return getattr(tp, "__qualname__", None) or repr(tp)
