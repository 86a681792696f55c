"""Tests for calls, results, the error taxonomy and the @tool marker."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from toolwire import (
    ErrorCode,
    RegistrationError,
    ToolCall,
    ToolError,
    ToolException,
    ToolExecutionError,
    ToolLookupError,
    ToolResult,
    ToolTimeoutError,
    ToolValidationAggregateError,
    ToolValidationError,
    tool,
)
from toolwire.foundation.core import (
    default_tool_name,
    extract_description,
    get_marker,
    is_tool,
    parse_docstring_params,
    to_snake_case,
)
from toolwire.foundation.errors import normalize_message
from toolwire.foundation.schema import ErrorKind, SchemaValidationError


# ─────────────────────────────────────────────────────────────────────────────
# ToolCall
# ─────────────────────────────────────────────────────────────────────────────

def test_call_id_generated_when_absent() -> None:
    first, second = ToolCall(name="add"), ToolCall(id=None, name="add")
    assert first.id and second.id
    assert first.id != second.id


def test_call_rejects_blank_name_and_id() -> None:
    with pytest.raises(ValidationError):
        ToolCall(name="   ")
    with pytest.raises(ValidationError):
        ToolCall(name="")
    with pytest.raises(ValidationError):
        ToolCall(id="", name="add")


def test_call_arguments_default_to_empty() -> None:
    assert ToolCall(name="add", arguments=None).arguments == {}


def test_call_is_frozen() -> None:
    call = ToolCall(name="add")
    with pytest.raises(ValidationError):
        call.name = "sub"  # type: ignore[misc]


def test_call_rendering() -> None:
    assert str(ToolCall(id="c1", name="add", arguments={"a": 1, "b": 2})) == \
        "Name: 'add' (id: c1) with Arguments: [a: 1, b: 2]"
    assert str(ToolCall(id="c2", name="now")) == "Name: 'now' (id: c2) with Arguments: [none]"


# ─────────────────────────────────────────────────────────────────────────────
# ToolResult
# ─────────────────────────────────────────────────────────────────────────────

def test_ok_result() -> None:
    result = ToolResult.ok("c1", "3")
    assert (result.is_error, result.error) == (False, None)
    assert str(result) == "[c1] 3"


def test_failure_result_carries_error() -> None:
    result = ToolResult.failure("c1", ToolLookupError("nope"))
    assert result.is_error
    assert result.output == "Tool 'nope' is not registered."
    assert result.error == ToolError(
        tool_name="nope", message="Tool 'nope' is not registered.", code=ErrorCode.NOT_FOUND, recoverable=False,
    )
    assert str(result) == "[c1] error: Tool 'nope' is not registered."


def test_error_set_iff_is_error() -> None:
    with pytest.raises(ValidationError):
        ToolResult(id="c1", output="boom", is_error=True)
    error = ToolLookupError("x").to_error()
    with pytest.raises(ValidationError):
        ToolResult(id="c1", output="fine", error=error)


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

def test_tool_error_render_and_retryable() -> None:
    error = ToolTimeoutError("slow", 2).to_error()
    assert error.render() == "Tool Error (slow) [TIMEOUT]: Tool execution timed out after 2s"
    assert error.is_retryable
    assert error.model_dump()["is_retryable"] is True
    assert not ToolLookupError("x").to_error().is_retryable


@pytest.mark.parametrize("seconds,expected", [
    (1.5, "Tool execution timed out after 1.5s"),
    (0.05, "Tool execution timed out after 0.05s"),
    (10, "Tool execution timed out after 10s"),
    (30.0, "Tool execution timed out after 30s"),
])
def test_timeout_messages(seconds: float, expected: str) -> None:
    assert ToolTimeoutError("t", seconds).for_llm() == expected


def test_exception_requires_tool_name() -> None:
    with pytest.raises(ValueError):
        ToolException(" ", "message")


def test_single_parameter_validation_error() -> None:
    err = ToolValidationError("weather", "days", "Expected integer")
    assert err.for_llm() == "Invalid 'days' for 'weather': days: Expected integer"
    assert err.to_error().code is ErrorCode.INVALID_PARAMS


def test_aggregate_validation_error() -> None:
    errors = [
        SchemaValidationError(parameter_name="a", path="a", message="Expected integer", error_kind=ErrorKind.TYPE_ERROR),
        SchemaValidationError(parameter_name="b", path="b", message="Missing required parameter.", error_kind=ErrorKind.MISSING),
    ]
    err = ToolValidationAggregateError("add", errors)
    assert err.for_llm() == "Invalid arguments for 'add': a: Expected integer; b: Missing required parameter."
    assert err.parameter_names == ["a", "b"]
    assert errors[1].is_missing
    assert ToolValidationAggregateError("add", None).for_llm() == "Invalid arguments for 'add': Invalid tool parameters."


def test_execution_error_from_exception() -> None:
    err = ToolExecutionError.from_exception("t", KeyError("missing key"))
    assert err.for_llm() == "'missing key'"
    assert ToolExecutionError.from_exception("t", RuntimeError("a" * 50), max_length=10).for_llm() == "aaaaaaa..."


def test_normalize_message() -> None:
    assert normalize_message("line one\n    line two\t end") == "line one line two end"
    assert normalize_message("short", max_length=10) == "short"


def test_registration_error_is_value_error() -> None:
    err = RegistrationError("duplicate", tool_name="add")
    assert isinstance(err, ValueError)
    assert (err.tool_name, err.code) == ("add", ErrorCode.REGISTRATION_ERROR)


# ─────────────────────────────────────────────────────────────────────────────
# @tool Marker & Helpers
# ─────────────────────────────────────────────────────────────────────────────

def test_tool_marker_leaves_function_untouched() -> None:
    def original(x: int) -> int:
        return x

    marked = tool(original)
    assert marked is original
    assert marked(2) == 2
    assert is_tool(original)


def test_tool_marker_with_options() -> None:
    @tool(name="custom", description="Custom tool", params={"x": "An integer"})
    def fn(x: int) -> int:
        return x

    marker = get_marker(fn)
    assert marker is not None
    assert (marker.name, marker.description, dict(marker.params)) == ("custom", "Custom tool", {"x": "An integer"})


def test_marker_visible_through_descriptors() -> None:
    class Tools:
        @tool
        @staticmethod
        def one() -> int:
            return 1

        @staticmethod
        @tool
        def two() -> int:
            return 2

    assert is_tool(Tools.one) and is_tool(vars(Tools)["one"])
    assert is_tool(Tools.two) and is_tool(vars(Tools)["two"])


def test_parse_docstring_params() -> None:
    doc = """Search things.

    Args:
        query (str): What to search for
        limit: Max results

    Returns:
        Matches
    """
    assert parse_docstring_params(doc) == {"query": "What to search for", "limit": "Max results"}
    assert parse_docstring_params("No sections here.") == {}
    assert parse_docstring_params(None) == {}


def test_extract_description() -> None:
    assert extract_description("  First line.\n\nMore.") == "First line."
    assert extract_description("   ") is None
    assert extract_description(None) is None


def test_naming_helpers() -> None:
    assert to_snake_case("WeatherService") == "weather_service"
    assert to_snake_case("getHTTPResponse") == "get_http_response"
    assert default_tool_name("getForecast") == "get_forecast"

    class WeatherService:
        pass

    assert default_tool_name("GetForecast", WeatherService) == "weather_service.get_forecast"
