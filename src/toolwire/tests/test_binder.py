"""Tests for binding JSON arguments to native parameter lists."""

from __future__ import annotations

import copy
import datetime as dt
from enum import Enum
from typing import Annotated, Any, Callable

import pytest
from pydantic import BaseModel, Field

from toolwire import CancellationToken, ToolRegistry, ToolValidationAggregateError, bind
from toolwire.foundation.schema import ErrorKind


class Color(Enum):
    RED = "red"
    GREEN = "green"


class Location(BaseModel):
    city: str = Field(min_length=1)
    country: str = "NO"


def weather(city: str) -> str:
    return city


def paged(query: str, page: int = 1, size: float = 20.0) -> list[str]:
    return []


def greet(name: str, title: str | None) -> str:
    return name


def cancellable(seconds: float, token: CancellationToken) -> None:
    pass


def locate(location: Location) -> str:
    return location.city


def mixed(a: int, b: str, c: list[int]) -> None:
    pass


def paint(color: Color, palette: list[Color] = []) -> str:  # noqa: B006
    return color.name


def forecast(days: Annotated[int, Field(ge=1, le=10)]) -> int:
    return days


def schedule(when: dt.datetime, tags: dict[str, list[str]] | None = None) -> str:
    return when.isoformat()


@pytest.fixture
def bind_to(registry: ToolRegistry) -> Callable[..., list[object]]:
    """Bind ``args`` to a freshly registered ``func``."""
    def _bind(func: Callable[..., Any], args: dict[str, Any] | None, token: CancellationToken | None = None) -> list[object]:
        definition = registry.register(func)
        return bind(definition.name, definition.parameters, args, token)
    return _bind


# ─────────────────────────────────────────────────────────────────────────────
# Basic Binding
# ─────────────────────────────────────────────────────────────────────────────

def test_binds_in_declared_order(bind_to: Callable[..., list[object]]) -> None:
    assert bind_to(weather, {"city": "Tokyo"}) == ["Tokyo"]


def test_missing_parameter_fails(bind_to: Callable[..., list[object]]) -> None:
    with pytest.raises(ToolValidationAggregateError) as exc_info:
        bind_to(weather, {})
    err = exc_info.value
    assert len(err.errors) == 1
    assert err.errors[0].error_kind is ErrorKind.MISSING
    assert err.errors[0].path == "city"
    assert err.for_llm() == "Invalid arguments for 'weather': city: Missing required parameter."


def test_none_arguments_treated_as_empty(bind_to: Callable[..., list[object]]) -> None:
    with pytest.raises(ToolValidationAggregateError) as exc_info:
        bind_to(weather, None)
    assert exc_info.value.parameter_names == ["city"]


def test_defaults_fill_absent_and_null(bind_to: Callable[..., list[object]], registry: ToolRegistry) -> None:
    assert bind_to(paged, {"query": "q"}) == ["q", 1, 20.0]
    definition = registry.get("paged")
    assert definition is not None
    assert bind("paged", definition.parameters, {"query": "q", "page": None, "size": 5}, None) == ["q", 1, 5.0]


def test_optional_without_default_binds_none(bind_to: Callable[..., list[object]], registry: ToolRegistry) -> None:
    assert bind_to(greet, {"name": "Ada"}) == ["Ada", None]
    definition = registry["greet"]
    assert bind("greet", definition.parameters, {"name": "Ada", "title": None}, None) == ["Ada", None]
    assert bind("greet", definition.parameters, {"name": "Ada", "title": "Dr"}, None) == ["Ada", "Dr"]


def test_cancellation_slot_receives_token(bind_to: Callable[..., list[object]]) -> None:
    token = CancellationToken()
    values = bind_to(cancellable, {"seconds": 1, "token": "ignored"}, token)
    assert values == [1.0, token]
    assert values[1] is token


# ─────────────────────────────────────────────────────────────────────────────
# Structured Parameters
# ─────────────────────────────────────────────────────────────────────────────

def test_single_structured_parameter_receives_whole_object(bind_to: Callable[..., list[object]]) -> None:
    (location,) = bind_to(locate, {"city": "Oslo"})
    assert location == Location(city="Oslo")


def test_single_structured_parameter_by_name(bind_to: Callable[..., list[object]], registry: ToolRegistry) -> None:
    bind_to(locate, {"location": {"city": "Bergen", "country": "NO"}})
    definition = registry["locate"]
    (location,) = bind("locate", definition.parameters, {"location": {"city": "Bergen"}}, None)
    assert isinstance(location, Location)
    assert location.city == "Bergen"


def test_nested_conversion_errors_carry_paths(bind_to: Callable[..., list[object]]) -> None:
    with pytest.raises(ToolValidationAggregateError) as exc_info:
        bind_to(locate, {"location": {"city": ""}})
    (error,) = exc_info.value.errors
    assert error.path == "location.city"
    assert error.parameter_name == "location"
    assert error.error_kind is ErrorKind.TYPE_ERROR


def test_datetime_and_nested_collections(bind_to: Callable[..., list[object]]) -> None:
    when, tags = bind_to(schedule, {"when": "2024-01-02T03:04:05", "tags": {"team": ["a", "b"]}})
    assert when == dt.datetime(2024, 1, 2, 3, 4, 5)
    assert tags == {"team": ["a", "b"]}


# ─────────────────────────────────────────────────────────────────────────────
# Enumerations & Constraints
# ─────────────────────────────────────────────────────────────────────────────

def test_enum_names_bind_to_members(bind_to: Callable[..., list[object]]) -> None:
    assert bind_to(paint, {"color": "GREEN", "palette": ["RED", "GREEN"]}) == [
        Color.GREEN, [Color.RED, Color.GREEN],
    ]


def test_enum_values_are_not_names(bind_to: Callable[..., list[object]]) -> None:
    with pytest.raises(ToolValidationAggregateError) as exc_info:
        bind_to(paint, {"color": "red"})
    assert exc_info.value.errors[0].message == "Expected one of: RED, GREEN"


def test_constraints_enforced_by_conversion(bind_to: Callable[..., list[object]]) -> None:
    with pytest.raises(ToolValidationAggregateError) as exc_info:
        bind_to(forecast, {"days": 42})
    (error,) = exc_info.value.errors
    assert error.path == "days"
    assert error.error_kind is ErrorKind.TYPE_ERROR
    assert "less than or equal to 10" in error.message


# ─────────────────────────────────────────────────────────────────────────────
# Aggregation & Purity
# ─────────────────────────────────────────────────────────────────────────────

def test_all_parameter_errors_aggregate(bind_to: Callable[..., list[object]]) -> None:
    with pytest.raises(ToolValidationAggregateError) as exc_info:
        bind_to(mixed, {"a": "x", "c": [1, "two"]})
    err = exc_info.value
    assert [(e.path, e.error_kind) for e in err.errors] == [
        ("a", ErrorKind.TYPE_ERROR),
        ("b", ErrorKind.MISSING),
        ("c[1]", ErrorKind.TYPE_ERROR),
    ]
    assert err.parameter_names == ["a", "b", "c"]
    assert err.for_llm() == (
        "Invalid arguments for 'mixed': a: Expected integer; b: Missing required parameter.; c[1]: Expected integer"
    )


def test_booleans_and_integral_floats_rejected(bind_to: Callable[..., list[object]]) -> None:
    with pytest.raises(ToolValidationAggregateError) as exc_info:
        bind_to(mixed, {"a": True, "b": "ok", "c": [2.0]})
    assert [e.path for e in exc_info.value.errors] == ["a", "c[0]"]


def test_arguments_never_mutated(bind_to: Callable[..., list[object]]) -> None:
    args = {"color": "RED", "palette": ["GREEN"]}
    snapshot = copy.deepcopy(args)
    bind_to(paint, args)
    assert args == snapshot
