"""Central registry for tool discovery and management.

The registry provides:
- Registration of plain callables and of @tool-marked class members
- Case-insensitive lookup by name
- Provider-neutral schema export for LLM tool descriptions
- A process-wide default instance

Every operation is safe under concurrent readers and writers.
"""

from __future__ import annotations

import inspect
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from toolwire.foundation.core import (
    ToolDefinition,
    default_tool_name,
    extract_description,
    get_marker,
    iter_marked,
)
from toolwire.foundation.errors import JsonDict, RegistrationError

from .signature import reflect

if TYPE_CHECKING:
    from toolwire.foundation.schema import TypeSchemaEngine
    from toolwire.runtime.observability.logging import BoundLogger


def _logger() -> BoundLogger:
    from toolwire.runtime.observability.logging import get_logger
    return get_logger("toolwire.registry")


@dataclass(slots=True)
class RegistrationReport:
    """Outcome of a bulk registration.

    Attributes:
        registered: Definitions added to the registry
        skipped: ``(member, reason)`` for each marked member that was rejected
    """
    registered: list[ToolDefinition] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.skipped

    def __len__(self) -> int:
        return len(self.registered)


class ToolRegistry:
    """Central registry for all available tools.

    Names are unique under case-insensitive comparison: ``get("Add")`` and
    ``get("add")`` return the same definition.

    Example:
        >>> registry = ToolRegistry()
        >>> def add(a: int, b: int) -> int:
        ...     '''Add two integers.'''
        ...     return a + b
        >>> registry.register(add).name
        'add'
        >>> registry.get("ADD") is registry.get("add")
        True
    """

    __slots__ = ("_tools", "_lock", "_engine")

    def __init__(self, *, engine: TypeSchemaEngine | None = None) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._lock = threading.RLock()
        self._engine = engine

    # ─────────────────────────────────────────────────────────────────
    # Registration
    # ─────────────────────────────────────────────────────────────────

    def register(
        self,
        function: Callable[..., Any],
        name: str | None = None,
        description: str | None = None,
    ) -> ToolDefinition:
        """Register a callable as a tool.

        Args:
            function: Function, bound method, or callable object
            name: Explicit tool name (overrides @tool and the derived name)
            description: Explicit description (overrides @tool and the docstring)

        Raises:
            RegistrationError: Duplicate name or a signature that cannot be bridged to JSON
        """
        return self._register(function, name, description, owner_type=_owning_type(function))

    def register_all(self, target: object) -> RegistrationReport:
        """Register every @tool-marked member of a class or instance.

        Static and class methods register from either; instance methods need
        an instance. Rejected members are reported and logged, never raised.
        """
        owner_type = target if isinstance(target, type) else type(target)
        report = RegistrationReport()
        log = _logger().bind(owner=owner_type.__qualname__)

        for attr, raw in iter_marked(owner_type):
            if isinstance(target, type) and not isinstance(raw, (staticmethod, classmethod)):
                report.skipped.append((attr, "instance method requires an instance"))
                continue
            try:
                report.registered.append(self._register(getattr(target, attr), None, None, owner_type=owner_type))
            except RegistrationError as e:
                report.skipped.append((attr, str(e)))

        for member, reason in report.skipped:
            log.warning("tool skipped", member=member, reason=reason)
        log.debug("bulk registration finished", registered=len(report.registered), skipped=len(report.skipped))
        return report

    def _register(
        self,
        function: Callable[..., Any],
        name: str | None,
        description: str | None,
        *,
        owner_type: type | None,
    ) -> ToolDefinition:
        if not callable(function):
            raise RegistrationError(f"Cannot register {type(function).__name__} object: not callable.", tool_name=name)
        marker = get_marker(function)
        tool_name = _resolve_name(function, name, marker.name if marker else None, owner_type)
        sig = reflect(function, tool_name=tool_name, marker=marker, engine=self._engine)
        definition = ToolDefinition(
            name=tool_name,
            description=(
                description
                or (marker.description if marker else None)
                or extract_description(inspect.getdoc(function))
                or tool_name
            ),
            parameter_schema=sig.schema,
            function=function,
            parameters=sig.parameters,
            return_type=sig.return_type,
            owner=_owner_name(function, owner_type),
        )

        with self._lock:
            if (existing := self._tools.get(definition.key)) is not None:
                raise RegistrationError(
                    f"Tool '{tool_name}' from '{definition.owner}' conflicts with "
                    f"'{existing.name}' already registered by '{existing.owner}'.",
                    tool_name=tool_name,
                )
            self._tools[definition.key] = definition

        _logger().debug("tool registered", tool=tool_name, owner=definition.owner, params=len(sig.parameters))
        return definition

    def unregister(self, name: str) -> bool:
        """Remove a tool by name. Returns True if found."""
        with self._lock:
            return self._tools.pop(name.casefold(), None) is not None

    def clear(self) -> None:
        with self._lock:
            self._tools.clear()

    # ─────────────────────────────────────────────────────────────────
    # Lookup
    # ─────────────────────────────────────────────────────────────────

    def get(self, name: str) -> ToolDefinition | None:
        """Get tool by name (case-insensitive)."""
        with self._lock:
            return self._tools.get(name.casefold())

    def contains(self, name: str) -> bool:
        return self.get(name) is not None

    def __getitem__(self, name: str) -> ToolDefinition:
        """Get tool by name, raises KeyError if not found."""
        if (definition := self.get(name)) is None:
            raise KeyError(name)
        return definition

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.contains(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self.tools)

    @property
    def tools(self) -> tuple[ToolDefinition, ...]:
        """Snapshot of all definitions, in registration order."""
        with self._lock:
            return tuple(self._tools.values())

    def names(self) -> list[str]:
        return [t.name for t in self.tools]

    # ─────────────────────────────────────────────────────────────────
    # Export
    # ─────────────────────────────────────────────────────────────────

    def definitions(self) -> list[JsonDict]:
        """Provider-neutral descriptions of every tool (name, description, parameters)."""
        return [t.to_dict() for t in self.tools]

    def __repr__(self) -> str:
        return f"ToolRegistry(tools={self.names()!r})"


# ─────────────────────────────────────────────────────────────────────────────
# Naming
# ─────────────────────────────────────────────────────────────────────────────

def _owning_type(function: Callable[..., Any]) -> type | None:
    """Class a bound method belongs to (None for plain functions)."""
    bound_to = getattr(function, "__self__", None)
    if bound_to is None or inspect.ismodule(bound_to):
        return None
    return bound_to if isinstance(bound_to, type) else type(bound_to)


def _resolve_name(
    function: Callable[..., Any],
    explicit: str | None,
    marked: str | None,
    owner_type: type | None,
) -> str:
    if explicit is not None or marked is not None:
        chosen = (explicit if explicit is not None else marked) or ""
        if not chosen.strip():
            raise RegistrationError("Tool name must not be blank.")
        return chosen.strip()

    func_name = getattr(function, "__name__", None)
    if func_name is None and callable(function):
        # Callable object: name after its class
        return default_tool_name(type(function).__name__)
    if not func_name or func_name == "<lambda>":
        raise RegistrationError("Lambdas and anonymous callables require an explicit tool name.")
    return default_tool_name(func_name, owner_type)


def _owner_name(function: Callable[..., Any], owner_type: type | None) -> str:
    if owner_type is not None:
        return f"{owner_type.__module__}.{owner_type.__qualname__}"
    module = getattr(function, "__module__", None) or "<unknown>"
    return f"{module}.{getattr(function, '__qualname__', type(function).__qualname__)}"


# ─────────────────────────────────────────────────────────────────────────────
# Global Registry
# ─────────────────────────────────────────────────────────────────────────────

_registry: ToolRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> ToolRegistry:
    """Get the global tool registry (created on first use)."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = ToolRegistry()
    return _registry


def set_registry(registry: ToolRegistry) -> None:
    """Replace the global registry (useful for testing)."""
    global _registry
    _registry = registry


def reset_registry() -> None:
    """Drop the global registry. The next get_registry() returns a fresh one."""
    global _registry
    _registry = None
