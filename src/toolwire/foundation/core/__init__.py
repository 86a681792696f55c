"""Core building blocks: the data model, the @tool marker and cancellation tokens."""

from .cancellation import CancellationToken
from .decorator import (
    ToolMarker,
    default_tool_name,
    extract_description,
    get_marker,
    is_tool,
    iter_marked,
    parse_docstring_params,
    to_snake_case,
    tool,
)
from .models import ParameterDescriptor, ToolCall, ToolDefinition, ToolResult

__all__ = [
    # Models
    "ToolCall", "ToolResult", "ToolDefinition", "ParameterDescriptor",
    # Marker
    "tool", "ToolMarker", "get_marker", "is_tool", "iter_marked",
    # Helpers
    "parse_docstring_params", "extract_description", "to_snake_case", "default_tool_name",
    # Cancellation
    "CancellationToken",
]
