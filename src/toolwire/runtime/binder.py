"""Argument binding: JSON arguments object -> ordered native argument list.

Binding is all-or-nothing. Every parameter is checked, every failure is
collected, and a single ToolValidationAggregateError names them all; on
success the list matches the declared parameter order exactly.
"""

from __future__ import annotations

import collections.abc as cabc
import types
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, Sequence, Union, get_args, get_origin

from pydantic import BaseModel, ValidationError

from toolwire.foundation.errors import JsonMapping, ToolValidationAggregateError
from toolwire.foundation.schema import ErrorKind, SchemaValidationError, is_simple_type, unwrap_type, validate
from toolwire.foundation.schema.engine import record_fields

if TYPE_CHECKING:
    from toolwire.foundation.core import CancellationToken, ParameterDescriptor

_MISSING_PARAMETER = "Missing required parameter."


def bind(
    tool_name: str,
    parameters: Sequence[ParameterDescriptor],
    arguments: JsonMapping | None,
    token: CancellationToken | None,
) -> list[object]:
    """Bind ``arguments`` to ``parameters`` in declared order.

    Args:
        tool_name: Tool being called (used in the error report)
        parameters: Descriptors from the tool definition
        arguments: Decoded JSON arguments object (never modified)
        token: Active cancellation token, passed to cancellation-slot parameters

    Raises:
        ToolValidationAggregateError: One or more parameters are missing or invalid

    Example:
        >>> bind("weather", definition.parameters, {"city": "Tokyo"}, None)
        ['Tokyo']
    """
    args: JsonMapping = arguments or {}
    wrapped = _wrapped_parameter(parameters, args)
    errors: list[SchemaValidationError] = []
    values: list[object] = []

    for param in parameters:
        if param.is_cancellation_slot:
            values.append(token)
            continue

        if param is wrapped:
            raw: Any = args
        elif param.name in args:
            raw = args[param.name]
        elif param.has_default:
            values.append(param.default)
            continue
        elif not param.required:
            # Optional without a default
            values.append(None)
            continue
        else:
            errors.append(SchemaValidationError(
                parameter_name=param.name, path=param.name,
                message=_MISSING_PARAMETER, error_kind=ErrorKind.MISSING,
            ))
            continue

        # Explicit null for a defaulted, non-nullable parameter means "use the default"
        if raw is None and param.has_default and not param.schema.nullable:
            values.append(param.default)
            continue

        if found := validate(param.schema, raw, param.name, required=param.required):
            errors.extend(found)
            continue

        try:
            values.append(_convert(param, raw))
        except ValidationError as e:
            errors.extend(_from_pydantic(param.name, e))

    if errors:
        raise ToolValidationAggregateError(tool_name, errors)
    return values


def _wrapped_parameter(parameters: Sequence[ParameterDescriptor], args: JsonMapping) -> ParameterDescriptor | None:
    """The single non-simple parameter that receives the whole arguments object, if any."""
    bindable = [p for p in parameters if not p.is_cancellation_slot]
    if len(bindable) != 1:
        return None
    param = bindable[0]
    if is_simple_type(param.annotation) or param.name in args or (not args and param.has_default):
        return None
    return param


# ─────────────────────────────────────────────────────────────────────────────
# Conversion
# ─────────────────────────────────────────────────────────────────────────────

def _convert(param: ParameterDescriptor, raw: Any) -> object:
    if param.adapter is None:
        return raw
    return param.adapter.validate_python(enum_names_to_members(param.annotation, raw))


def enum_names_to_members(tp: Any, value: Any) -> Any:
    """Copy of ``value`` with enum member names replaced by members, guided by ``tp``.

    Schemas advertise enums by member name while pydantic converts by value,
    so names are resolved here before conversion.
    """
    if value is None:
        return None
    bare, _, _ = unwrap_type(tp)
    origin, type_args = get_origin(bare), get_args(bare)

    if isinstance(bare, type) and issubclass(bare, Enum):
        return bare.__members__.get(value, value) if isinstance(value, str) else value
    if origin is Literal:
        by_name = {m.name: m for m in type_args if isinstance(m, Enum)}
        return by_name.get(value, value) if isinstance(value, str) else value
    if origin in (Union, types.UnionType):
        # Follow the first member, matching the advertised schema
        return enum_names_to_members(type_args[0], value)

    if isinstance(value, cabc.Mapping):
        if origin is None and isinstance(bare, type) and (fields := record_fields(bare)):
            by_key = {f.name: f.annotation for f in fields}
            if issubclass(bare, BaseModel):
                # Accept both alias and attribute name on input
                by_key.update({name: info.annotation for name, info in bare.model_fields.items()})
            return {k: enum_names_to_members(by_key[k], v) if k in by_key else v for k, v in value.items()}
        if isinstance(container := origin or bare, type) and issubclass(container, cabc.Mapping):
            item_tp = type_args[1] if len(type_args) == 2 else Any
            return {k: enum_names_to_members(item_tp, v) for k, v in value.items()}
        return value

    if isinstance(value, (list, tuple)):
        if not type_args:
            return list(value)
        if origin is tuple and type_args[-1] is not Ellipsis and len(type_args) == len(value):
            return [enum_names_to_members(t, v) for t, v in zip(type_args, value)]
        return [enum_names_to_members(type_args[0], v) for v in value]
    return value


def _from_pydantic(param_name: str, exc: ValidationError) -> list[SchemaValidationError]:
    out: list[SchemaValidationError] = []
    for err in exc.errors(include_url=False):
        path = param_name
        for part in err.get("loc", ()):
            path += f"[{part}]" if isinstance(part, int) else f".{part}"
        out.append(SchemaValidationError(
            parameter_name=param_name,
            path=path,
            message=err.get("msg") or "Invalid value",
            error_kind=ErrorKind.MISSING if err.get("type") == "missing" else ErrorKind.TYPE_ERROR,
        ))
    return out
