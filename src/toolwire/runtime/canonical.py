"""Canonical JSON text for tool arguments.

Two argument objects that differ only in key order or in
surface whitespace inside strings canonicalize to the same text, which makes
the result usable as a deduplication or cache key.

Example:
    >>> canonicalize({"b": 1, "a": "x  y"}) == canonicalize({"a": "x y", "b": 1})
    True
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

import orjson
from pydantic_core import to_jsonable_python

from toolwire.foundation.errors import JsonMapping, JsonValue

_WHITESPACE = re.compile(r"\s+")


def normalize_arguments(value: Any) -> JsonValue:
    """Canonical copy of a JSON value (the input is never modified)."""
    match value:
        case str():
            return _WHITESPACE.sub(" ", value).strip()
        case Mapping():
            keys = sorted(value, key=lambda k: (str(k).casefold(), str(k)))
            return {str(k): normalize_arguments(value[k]) for k in keys}
        case list() | tuple():
            return [normalize_arguments(v) for v in value]
        case _:
            return value


def canonicalize(arguments: JsonMapping | None) -> str:
    """Compact canonical JSON text of an arguments object."""
    normalized = normalize_arguments(dict(arguments or {}))
    return orjson.dumps(normalized, default=to_jsonable_python).decode()
