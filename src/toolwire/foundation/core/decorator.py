"""The @tool marker and the naming/description helpers registration relies on.

Unlike a wrapper, @tool leaves the function untouched: it only attaches a
ToolMarker that the registry reads. Decorated functions stay directly callable
and can live on classes as instance, class or static methods.

Example:
    >>> class Weather:
    ...     @tool(description="Get the forecast for a city")
    ...     def get_forecast(self, city: str, days: int = 3) -> str:
    ...         '''Forecast lookup.
    ...
    ...         Args:
    ...             city: City name, e.g. "Tokyo"
    ...             days: Number of days to include
    ...         '''
    ...         return f"{city}: sunny for {days} days"
    ...
    >>> registry.register_all(Weather())   # registers "weather.get_forecast"
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Mapping, ParamSpec, TypeVar, overload

if TYPE_CHECKING:
    from collections.abc import Iterator

P = ParamSpec("P")
R = TypeVar("R")

MARKER_ATTR = "__toolwire_tool__"


@dataclass(frozen=True, slots=True)
class ToolMarker:
    """Registration hints attached by @tool.

    Attributes:
        name: Explicit tool name (overrides the derived one)
        description: Explicit tool description
        params: Per-parameter descriptions, keyed by parameter name
    """
    name: str | None = None
    description: str | None = None
    params: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


# ─────────────────────────────────────────────────────────────────────────────
# The @tool Decorator
# ─────────────────────────────────────────────────────────────────────────────

@overload
def tool(func: Callable[P, R]) -> Callable[P, R]: ...

@overload
def tool(
    *,
    name: str | None = None,
    description: str | None = None,
    params: Mapping[str, str] | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def tool(
    func: Callable[P, R] | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
    params: Mapping[str, str] | None = None,
) -> Callable[P, R] | Callable[[Callable[P, R]], Callable[P, R]]:
    """Mark a function (or method) as a tool.

    Args:
        func: The function to mark (used when decorator called without parens)
        name: Tool name (defaults to ``<owner>.<method>`` / function name in snake_case)
        description: Tool description (defaults to first line of docstring)
        params: Human-readable descriptions per parameter name

    Returns:
        The same function, carrying a ToolMarker

    Notes:
        - Works above or below @staticmethod / @classmethod
        - Marking does not register; see ToolRegistry.register / register_all
    """
    marker = ToolMarker(name=name, description=description, params=MappingProxyType(dict(params or {})))

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        target = getattr(fn, "__func__", fn)
        setattr(target, MARKER_ATTR, marker)
        return fn

    # Support both @tool and @tool(...) syntax
    if func is not None:
        return decorator(func)
    return decorator


def get_marker(obj: object) -> ToolMarker | None:
    """ToolMarker attached to ``obj`` (or to the function a method/descriptor wraps)."""
    for candidate in (obj, getattr(obj, "__func__", None)):
        if isinstance(marker := getattr(candidate, MARKER_ATTR, None), ToolMarker):
            return marker
    return None


def is_tool(obj: object) -> bool:
    return get_marker(obj) is not None


def iter_marked(owner: type) -> Iterator[tuple[str, object]]:
    """Marked members of a class (raw descriptors, in MRO then definition order)."""
    seen: set[str] = set()
    for klass in owner.__mro__:
        for attr, value in vars(klass).items():
            if attr in seen:
                continue
            seen.add(attr)
            if is_tool(value):
                yield attr, value


# ─────────────────────────────────────────────────────────────────────────────
# Docstring Parsing
# ─────────────────────────────────────────────────────────────────────────────

_PARAM_PATTERN = re.compile(
    r"^\s*(?P<name>\w+)\s*(?:\([^)]*\))?\s*:\s*(?P<desc>.+?)(?=\n\s*\w+\s*(?:\([^)]*\))?\s*:|$)",
    re.MULTILINE | re.DOTALL,
)


def parse_docstring_params(docstring: str | None) -> dict[str, str]:
    """Extract parameter descriptions from Google-style docstrings."""
    if not docstring:
        return {}

    # Find Args/Parameters section
    sections = re.split(r"\n\s*(?:Args|Arguments|Parameters)\s*:\s*\n", docstring, flags=re.IGNORECASE)
    if len(sections) < 2:
        return {}

    # Parse until next section or end
    args_section = re.split(r"\n\s*(?:Returns|Raises|Examples?|Notes?|Yields)\s*:", sections[1], flags=re.IGNORECASE)[0]

    params: dict[str, str] = {}
    for match in _PARAM_PATTERN.finditer(args_section):
        params[match.group("name")] = " ".join(match.group("desc").split())
    return params


def extract_description(docstring: str | None) -> str | None:
    """First line of a docstring, or None."""
    if not docstring or not (text := docstring.strip()):
        return None
    return text.split("\n", 1)[0].strip() or None


# ─────────────────────────────────────────────────────────────────────────────
# Naming
# ─────────────────────────────────────────────────────────────────────────────

def to_snake_case(name: str) -> str:
    """Convert CamelCase or mixed to snake_case."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def default_tool_name(func_name: str, owner: type | None = None) -> str:
    """``<owner>.<member>`` in snake_case, or the snake_case function name."""
    member = to_snake_case(func_name)
    return f"{to_snake_case(owner.__name__)}.{member}" if owner is not None else member
