"""Error taxonomy for tool registration and execution.

Every exception raised inside the execution pipeline derives from
ToolException and knows how to describe itself to the calling agent via
for_llm(). Those messages are the only thing an agent ever sees of a failure,
so they stay short, stable and free of tracebacks or Python type names.
"""

from __future__ import annotations

import re
from enum import StrEnum
from typing import TYPE_CHECKING, Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field

if TYPE_CHECKING:
    from collections.abc import Iterable

    from toolwire.foundation.schema.validator import SchemaValidationError


class ErrorCode(StrEnum):
    """Machine-readable classification of a failed call."""
    NOT_FOUND = "NOT_FOUND"
    INVALID_PARAMS = "INVALID_PARAMS"
    TIMEOUT = "TIMEOUT"
    EXECUTION_ERROR = "EXECUTION_ERROR"
    REGISTRATION_ERROR = "REGISTRATION_ERROR"


_RETRYABLE_CODES: frozenset[ErrorCode] = frozenset({ErrorCode.TIMEOUT, ErrorCode.EXECUTION_ERROR})
_WHITESPACE = re.compile(r"\s+")


class ToolError(BaseModel):
    """Structured, LLM-safe description of a failed tool call.

    Attributes:
        tool_name: Name the call was addressed to
        message: Agent-facing message (what ToolResult.output carries)
        code: Machine-readable error code
        recoverable: Whether the agent can fix the call and try again
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        json_schema_extra={
            "title": "Tool Error",
            "examples": [{
                "tool_name": "weather.get_forecast",
                "message": "Invalid arguments for 'weather.get_forecast': days: Expected integer",
                "code": "INVALID_PARAMS",
                "recoverable": True,
            }],
        },
    )

    tool_name: Annotated[str, Field(min_length=1)]
    message: Annotated[str, Field(min_length=1)]
    code: ErrorCode = ErrorCode.EXECUTION_ERROR
    recoverable: bool = True

    @computed_field
    @property
    def is_retryable(self) -> bool:
        """Whether retrying the identical call might succeed."""
        return self.code in _RETRYABLE_CODES

    @classmethod
    def from_exception(cls, exc: ToolException) -> Self:
        """Capture a pipeline exception as a structured error."""
        return cls(tool_name=exc.tool_name, message=exc.for_llm(), code=exc.code, recoverable=exc.recoverable)

    def render(self) -> str:
        """Format for logs and console display."""
        return f"Tool Error ({self.tool_name}) [{self.code}]: {self.message}"

    __str__ = render


# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────

class ToolException(Exception):
    """Base exception for tool failures. Message must be safe to hand to the LLM."""

    code: ErrorCode = ErrorCode.EXECUTION_ERROR
    recoverable: bool = True

    def __init__(self, tool_name: str, message: str) -> None:
        if not tool_name or not tool_name.strip():
            raise ValueError("Tool name is required.")
        self.tool_name = tool_name
        super().__init__(message)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

    def for_llm(self) -> str:
        """Message sent back to the LLM for self-correction."""
        return self.message

    def to_error(self) -> ToolError:
        return ToolError.from_exception(self)

    def __str__(self) -> str:
        return f"{self.tool_name}: {self.message}"


class ToolLookupError(ToolException):
    """Call addressed a tool that is not registered."""

    code = ErrorCode.NOT_FOUND
    recoverable = False

    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name, f"Tool '{tool_name}' is not registered.")


class ToolValidationError(ToolException):
    """A single parameter failed validation or conversion."""

    code = ErrorCode.INVALID_PARAMS

    def __init__(self, tool_name: str, parameter_name: str, message: str) -> None:
        self.parameter_name = parameter_name
        super().__init__(tool_name, f"{parameter_name}: {message}")

    def for_llm(self) -> str:
        return f"Invalid '{self.parameter_name}' for '{self.tool_name}': {self.message}"


class ToolValidationAggregateError(ToolException):
    """One or more parameters failed schema validation; all failures in one report."""

    code = ErrorCode.INVALID_PARAMS

    def __init__(self, tool_name: str, errors: Iterable[SchemaValidationError] | None) -> None:
        self.errors: list[SchemaValidationError] = list(errors or ())
        super().__init__(tool_name, self._build_message(self.errors))

    @property
    def parameter_names(self) -> list[str]:
        """Distinct failing parameters, in the order they were reported."""
        return list(dict.fromkeys(e.parameter_name for e in self.errors))

    def for_llm(self) -> str:
        return f"Invalid arguments for '{self.tool_name}': {self.message}"

    @staticmethod
    def _build_message(errors: list[SchemaValidationError]) -> str:
        if not errors:
            return "Invalid tool parameters."
        return "; ".join(f"{e.path or e.parameter_name}: {e.message}" for e in errors)


class ToolExecutionError(ToolException):
    """The callable itself raised."""

    code = ErrorCode.EXECUTION_ERROR

    @classmethod
    def from_exception(cls, tool_name: str, exc: BaseException, *, max_length: int = 500) -> Self:
        """Normalize an arbitrary exception into a concise tool-facing message."""
        return cls(tool_name, normalize_message(str(exc), max_length=max_length) or "Tool execution failed.")


class ToolTimeoutError(ToolException):
    """The configured execution timeout elapsed before the call resolved."""

    code = ErrorCode.TIMEOUT

    def __init__(self, tool_name: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(tool_name, f"Tool execution timed out after {timeout:.2f}".rstrip("0").rstrip(".") + "s")


class RegistrationError(ValueError):
    """A callable cannot be registered (duplicate name or JSON-incompatible signature).

    Fatal to that registration only; the registry is left unchanged.
    """

    code = ErrorCode.REGISTRATION_ERROR

    def __init__(self, message: str, *, tool_name: str | None = None) -> None:
        self.tool_name = tool_name
        super().__init__(message)


def normalize_message(message: str, *, max_length: int = 500) -> str:
    """Collapse whitespace (tracebacks, multi-line reprs) and clamp length."""
    text = _WHITESPACE.sub(" ", message).strip()
    return text if len(text) <= max_length else text[: max(max_length - 3, 0)].rstrip() + "..."
