"""JSON type aliases shared across toolwire.

Arguments arrive from the model as parsed JSON, so everything downstream
(validator, binder, canonicalizer) speaks in these aliases rather than in
provider-specific token types.
"""

from __future__ import annotations

from typing import Any, Mapping, Union

# Any for recursive slots to keep Pydantic from resolving the alias eagerly
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]
JsonMapping = Mapping[str, Any]
