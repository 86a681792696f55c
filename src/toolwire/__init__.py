"""Toolwire - expose Python callables to AI agents as schema-described tools.

Callables are registered once: their signatures are reflected into structural
schemas the model can read, and every call is validated, bound, executed
under cancellation/timeout control and normalized into a textual result.

Quick Start:
    >>> from toolwire import ToolCall, ToolExecutor, get_registry
    >>>
    >>> def add(a: int, b: int) -> int:
    ...     '''Add two integers.
    ...
    ...     Args:
    ...         a: First addend
    ...         b: Second addend
    ...     '''
    ...     return a + b
    >>>
    >>> registry = get_registry()
    >>> registry.register(add)
    >>> registry.definitions()[0]["parameters"]["required"]
    ['a', 'b']
    >>> result = await ToolExecutor().execute(ToolCall(name="add", arguments={"a": 1, "b": 2}))
    >>> result.output
    '3'

Marked Members (Bulk Registration):
    >>> from toolwire import tool
    >>>
    >>> class Weather:
    ...     @tool(description="Get the forecast for a city", params={"city": "City name"})
    ...     def get_forecast(self, city: str, days: int = 3) -> str:
    ...         return f"{city}: sunny for {days} days"
    >>>
    >>> report = registry.register_all(Weather())
    >>> [d.name for d in report.registered]
    ['weather.get_forecast']

Cancellation & Timeouts:
    >>> token = CancellationToken()
    >>> executor = ToolExecutor(timeout=5.0, listeners=[LoggingListener()])
    >>> await executor.execute(call, token)  # token.cancel() -> asyncio.CancelledError
"""

from __future__ import annotations

__version__ = "0.1.0"

# Errors
from .foundation.errors import (
    ErrorCode,
    RegistrationError,
    ToolError,
    ToolException,
    ToolExecutionError,
    ToolLookupError,
    ToolTimeoutError,
    ToolValidationAggregateError,
    ToolValidationError,
)

# Configuration
from .foundation.config import ToolwireSettings, clear_settings_cache, get_settings

# Core
from .foundation.core import (
    CancellationToken,
    ParameterDescriptor,
    ToolCall,
    ToolDefinition,
    ToolResult,
    tool,
)

# Schemas
from .foundation.schema import (
    SchemaKind,
    SchemaValidationError,
    StructuralSchema,
    TypeSchemaEngine,
    clear_schema_cache,
    schema_for,
    validate,
)

# Registry
from .foundation.registry import (
    RegistrationReport,
    ToolRegistry,
    get_registry,
    reset_registry,
    set_registry,
)

# Runtime
from .runtime.binder import bind
from .runtime.canonical import canonicalize, normalize_arguments
from .runtime.executor import ExecutionState, ToolExecutor, execute, execute_many, normalize_output

# Observability
from .runtime.observability import (
    BaseListener,
    ExecutionListener,
    LoggingListener,
    configure_logging,
    get_logger,
    log_context,
)

__all__ = [
    # Version
    "__version__",
    # Errors
    "ErrorCode",
    "ToolError",
    "ToolException",
    "ToolLookupError",
    "ToolValidationError",
    "ToolValidationAggregateError",
    "ToolExecutionError",
    "ToolTimeoutError",
    "RegistrationError",
    # Configuration
    "ToolwireSettings",
    "get_settings",
    "clear_settings_cache",
    # Core
    "ToolCall",
    "ToolResult",
    "ToolDefinition",
    "ParameterDescriptor",
    "CancellationToken",
    "tool",
    # Schemas
    "StructuralSchema",
    "SchemaKind",
    "TypeSchemaEngine",
    "schema_for",
    "clear_schema_cache",
    "validate",
    "SchemaValidationError",
    # Registry
    "ToolRegistry",
    "RegistrationReport",
    "get_registry",
    "set_registry",
    "reset_registry",
    # Runtime
    "ToolExecutor",
    "ExecutionState",
    "execute",
    "execute_many",
    "bind",
    "normalize_output",
    "canonicalize",
    "normalize_arguments",
    # Observability
    "ExecutionListener",
    "BaseListener",
    "LoggingListener",
    "get_logger",
    "configure_logging",
    "log_context",
    # Convenience
    "init_tools",
]


def init_tools(*targets: object, registry: ToolRegistry | None = None) -> ToolRegistry:
    """Register callables and @tool-marked classes/instances in one go.

    Functions go through ``register``; classes and instances through
    ``register_all`` (whose skips are logged, not raised).

    Example:
        >>> from toolwire import init_tools
        >>> registry = init_tools(add, Weather())
    """
    registry = registry if registry is not None else get_registry()
    for target in targets:
        if isinstance(target, type) or not callable(target) or not hasattr(target, "__name__"):
            registry.register_all(target)
        else:
            registry.register(target)  # type: ignore[arg-type]
    return registry
