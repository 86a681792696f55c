"""Error handling for toolwire.

- ErrorCode: Standard error codes for failed calls
- ToolError: Structured, LLM-safe error captured on a ToolResult
- ToolException hierarchy: lookup, validation, execution and timeout failures
- RegistrationError: raised to the registering code, never to the agent
"""

from .errors import (
    ErrorCode,
    RegistrationError,
    ToolError,
    ToolException,
    ToolExecutionError,
    ToolLookupError,
    ToolTimeoutError,
    ToolValidationAggregateError,
    ToolValidationError,
    normalize_message,
)
from .types import JsonDict, JsonMapping, JsonPrimitive, JsonValue

__all__ = [
    # Core errors
    "ErrorCode", "ToolError", "ToolException", "normalize_message",
    # Taxonomy
    "ToolLookupError", "ToolValidationError", "ToolValidationAggregateError",
    "ToolExecutionError", "ToolTimeoutError", "RegistrationError",
    # JSON aliases
    "JsonDict", "JsonMapping", "JsonPrimitive", "JsonValue",
]
