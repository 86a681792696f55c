"""Type schema engine: Python type annotations -> StructuralSchema.

Rules, applied in priority order once ``Annotated`` metadata and ``Optional``
wrappers are peeled off:

1. Enum subclasses (and string Literals) -> string node with enum_values
2. Simple types (bool, int, float, Decimal, str, UUID, datetime/date/time)
3. Sequences other than str/bytes -> array with ``items``
4. String-keyed mappings -> object with ``additionalProperties``
5. Records (pydantic models, dataclasses, TypedDicts, NamedTuples, annotated
   classes) -> object with one property per public field

A record type met again while it is still being expanded collapses to an
opaque object instead of recursing. Final schemas are memoized per type and
handed out as deep copies, so callers may mutate what they receive.

Example:
    >>> from pydantic import BaseModel, Field
    >>> class Location(BaseModel):
    ...     city: str = Field(description="City name", min_length=1)
    ...     country: str | None = None
    >>> schema_for(Location).to_json_schema()["required"]
    ['city']
"""

from __future__ import annotations

import collections
import collections.abc as cabc
import dataclasses
import datetime as dt
import threading
import types
import typing
import uuid
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, Union, get_args, get_origin, get_type_hints, is_typeddict

from pydantic import BaseModel
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined, to_jsonable_python

from .schema import SchemaKind, StructuralSchema

# ─────────────────────────────────────────────────────────────────────────────
# Type Tables
# ─────────────────────────────────────────────────────────────────────────────

_SIMPLE_TYPES: dict[type, tuple[SchemaKind, str | None]] = {
    bool: (SchemaKind.BOOLEAN, None),
    int: (SchemaKind.INTEGER, None),
    float: (SchemaKind.NUMBER, None),
    Decimal: (SchemaKind.NUMBER, None),
    str: (SchemaKind.STRING, None),
    bytes: (SchemaKind.STRING, None),
    uuid.UUID: (SchemaKind.STRING, None),
    dt.datetime: (SchemaKind.STRING, "date-time"),
    dt.date: (SchemaKind.STRING, "date"),
    dt.time: (SchemaKind.STRING, "time"),
}

_SEQUENCE_ORIGINS: frozenset[object] = frozenset({
    list, tuple, set, frozenset, collections.deque,
    cabc.Sequence, cabc.MutableSequence, cabc.Set, cabc.MutableSet,
    cabc.Collection, cabc.Iterable,
})

_MAPPING_ORIGINS: frozenset[object] = frozenset({
    dict, collections.OrderedDict, collections.defaultdict, cabc.Mapping, cabc.MutableMapping,
})

_NUMERIC_ENTRIES = ((SchemaKind.INTEGER, None), (SchemaKind.NUMBER, None))
_UNION_ORIGINS: frozenset[object] = frozenset({Union, types.UnionType})
_NONE_TYPE = type(None)


def _opaque() -> StructuralSchema:
    return StructuralSchema(kind=SchemaKind.OBJECT)


# ─────────────────────────────────────────────────────────────────────────────
# Type Unwrapping
# ─────────────────────────────────────────────────────────────────────────────

def unwrap_type(tp: Any) -> tuple[Any, list[object], bool]:
    """Peel Annotated/Optional/NewType/Required wrappers.

    Returns:
        (bare type, collected Annotated metadata, whether None is allowed)
    """
    metadata: list[object] = []
    nullable = False
    while True:
        origin = get_origin(tp)
        if origin is Annotated:
            metadata.extend(tp.__metadata__)
            tp = tp.__origin__
        elif origin in (typing.Required, typing.NotRequired):
            tp = get_args(tp)[0]
        elif origin in _UNION_ORIGINS and _NONE_TYPE in get_args(tp):
            nullable = True
            members = tuple(a for a in get_args(tp) if a is not _NONE_TYPE)
            tp = members[0] if len(members) == 1 else Union[members]  # type: ignore[valid-type]
        elif isinstance(tp, typing.NewType):
            tp = tp.__supertype__
        else:
            return tp, metadata, nullable


def is_simple_type(tp: Any) -> bool:
    """Whether ``tp`` maps straight to a JSON scalar (rule 2)."""
    bare, _, _ = unwrap_type(tp)
    return _simple_entry(bare) is not None


def _simple_entry(tp: Any) -> tuple[SchemaKind, str | None] | None:
    if not isinstance(tp, type) or issubclass(tp, Enum):
        return None
    for base in tp.__mro__:
        if (entry := _SIMPLE_TYPES.get(base)) is not None:
            return entry
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Constraints
# ─────────────────────────────────────────────────────────────────────────────

_CONSTRAINT_ATTRS: tuple[tuple[str, str], ...] = (
    ("min_length", "min_length"),
    ("max_length", "max_length"),
    ("ge", "minimum"),
    ("gt", "exclusive_minimum"),
    ("le", "maximum"),
    ("lt", "exclusive_maximum"),
    ("pattern", "pattern"),
)


def apply_metadata(schema: StructuralSchema, metadata: list[object]) -> StructuralSchema:
    """Attach field annotations (descriptions, bounds, patterns, format hints) to a node."""
    for item in metadata:
        if isinstance(item, str):
            schema.description = item
            continue
        if isinstance(item, FieldInfo):
            if item.description:
                schema.description = item.description
            if isinstance(extra := item.json_schema_extra, dict) and isinstance(fmt := extra.get("format"), str):
                schema.format = fmt
            apply_metadata(schema, list(item.metadata))
            continue
        for attr, target in _CONSTRAINT_ATTRS:
            if (value := getattr(item, attr, None)) is not None:
                setattr(schema, target, value)
    return schema


def json_default(value: object) -> object | None:
    """Default value as JSON, or None when it has no JSON form. Enum members export by name."""
    if value is None or value is PydanticUndefined:
        return None
    if isinstance(value, Enum):
        return value.name
    try:
        return to_jsonable_python(value)
    except Exception:  # noqa: BLE001 - an unexportable default is simply omitted
        return None


# ─────────────────────────────────────────────────────────────────────────────
# Record Fields
# ─────────────────────────────────────────────────────────────────────────────

@dataclasses.dataclass(slots=True, frozen=True)
class _Field:
    name: str
    annotation: Any
    has_default: bool
    default: object = None
    metadata: tuple[object, ...] = ()


def _model_fields(tp: type[BaseModel]) -> list[_Field]:
    out: list[_Field] = []
    for name, info in tp.model_fields.items():
        if info.exclude:
            continue
        has_default = not info.is_required()
        default = info.default if info.default_factory is None else None
        out.append(_Field(info.alias or name, info.annotation, has_default, default, (info,)))
    return out


def _dataclass_fields(tp: type) -> list[_Field]:
    hints = get_type_hints(tp, include_extras=True)
    out: list[_Field] = []
    for f in dataclasses.fields(tp):
        if not f.init or f.metadata.get("exclude"):
            continue
        has_default = f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
        default = f.default if f.default is not dataclasses.MISSING else None
        meta = (f.metadata["description"],) if isinstance(f.metadata.get("description"), str) else ()
        out.append(_Field(f.name, hints.get(f.name, Any), has_default, default, meta))
    return out


def _typeddict_fields(tp: type) -> list[_Field]:
    hints = get_type_hints(tp, include_extras=True)
    required_keys = getattr(tp, "__required_keys__", frozenset(hints))
    out: list[_Field] = []
    for name, hint in hints.items():
        # Required/NotRequired wrappers win over __required_keys__ (string annotations hide them from it)
        origin = get_origin(hint)
        required = origin is typing.Required or (name in required_keys and origin is not typing.NotRequired)
        out.append(_Field(name, hint, not required))
    return out


def _namedtuple_fields(tp: type) -> list[_Field]:
    hints = get_type_hints(tp, include_extras=True)
    defaults: dict[str, object] = getattr(tp, "_field_defaults", {})
    return [
        _Field(name, hints.get(name, Any), name in defaults, defaults.get(name))
        for name in tp._fields  # type: ignore[attr-defined]
    ]


def _annotated_class_fields(tp: type) -> list[_Field]:
    hints = get_type_hints(tp, include_extras=True)
    out: list[_Field] = []
    for name, hint in hints.items():
        if name.startswith("_") or get_origin(hint) is ClassVar or hint is ClassVar:
            continue
        has_default = hasattr(tp, name)
        out.append(_Field(name, hint, has_default, getattr(tp, name, None)))
    return out


def record_fields(tp: type) -> list[_Field] | None:
    """Public fields of a record type, or None if ``tp`` exposes none we can read."""
    try:
        if issubclass(tp, BaseModel):
            return _model_fields(tp)
        if dataclasses.is_dataclass(tp):
            return _dataclass_fields(tp)
        if is_typeddict(tp):
            return _typeddict_fields(tp)
        if issubclass(tp, tuple) and hasattr(tp, "_fields"):
            return _namedtuple_fields(tp)
        return _annotated_class_fields(tp) or None
    except (NameError, TypeError):
        # Unresolvable forward references
        return None


# ─────────────────────────────────────────────────────────────────────────────
# Engine
# ─────────────────────────────────────────────────────────────────────────────

class TypeSchemaEngine:
    """Builds and memoizes StructuralSchemas for Python types.

    Thread-safe: the cache is guarded by a lock and only ever handed out as
    deep copies.

    Args:
        cache_enabled: Memoize final schemas per type
        additional_properties: Value emitted as additionalProperties on record nodes
    """

    __slots__ = ("_cache", "_lock", "cache_enabled", "additional_properties")

    def __init__(self, *, cache_enabled: bool = True, additional_properties: bool = False) -> None:
        self._cache: dict[object, StructuralSchema] = {}
        self._lock = threading.Lock()
        self.cache_enabled = cache_enabled
        self.additional_properties = additional_properties

    def schema_for(self, tp: Any) -> StructuralSchema:
        """Schema for ``tp`` (a deep copy; safe to mutate)."""
        key = _cache_key(tp) if self.cache_enabled else None
        if key is not None:
            with self._lock:
                cached = self._cache.get(key)
            if cached is not None:
                return cached.model_copy(deep=True)

        schema = self._build(tp, set())
        if key is not None:
            with self._lock:
                schema = self._cache.setdefault(key, schema)
        return schema.model_copy(deep=True)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    # ─────────────────────────────────────────────────────────────────
    # Construction
    # ─────────────────────────────────────────────────────────────────

    def _build(self, tp: Any, visiting: set[type]) -> StructuralSchema:
        bare, metadata, nullable = unwrap_type(tp)
        schema = self._build_bare(bare, visiting)
        apply_metadata(schema, metadata)
        if nullable:
            schema.nullable = True
        return schema

    def _build_bare(self, tp: Any, visiting: set[type]) -> StructuralSchema:
        # 1. Enumerations
        if isinstance(tp, type) and issubclass(tp, Enum):
            return _enum_schema(tp)
        origin, args = get_origin(tp), get_args(tp)
        if origin is Literal:
            return _literal_schema(args)

        # 2. Simple types
        if (entry := _simple_entry(tp)) is not None:
            kind, fmt = entry
            return StructuralSchema(kind=kind, format=fmt)

        if tp is Any or tp is object:
            return _opaque()

        # Multi-member unions: numeric unions widen to number, others keep the first member's shape
        if origin in _UNION_ORIGINS:
            if all(_simple_entry(a) in _NUMERIC_ENTRIES for a in args):
                return StructuralSchema(kind=SchemaKind.NUMBER)
            return self._build(args[0], visiting)

        # 3. Sequences
        if tp in _SEQUENCE_ORIGINS or origin in _SEQUENCE_ORIGINS:
            return StructuralSchema(kind=SchemaKind.ARRAY, items=self._element_schema(tp, args, visiting))

        # 4. Mappings
        if tp in _MAPPING_ORIGINS or origin in _MAPPING_ORIGINS:
            if args and unwrap_type(args[0])[0] is not str:
                return _opaque()
            value_schema = self._build(args[1], visiting) if len(args) == 2 else _opaque()
            return StructuralSchema(kind=SchemaKind.OBJECT, additional_properties=value_schema)

        # 5. Records
        if isinstance(tp, type):
            return self._record_schema(tp, visiting)
        return _opaque()

    def _element_schema(self, tp: Any, args: tuple[Any, ...], visiting: set[type]) -> StructuralSchema:
        if not args:
            return _opaque()
        if len(args) == 2 and args[1] is Ellipsis:
            return self._build(args[0], visiting)
        if all(a == args[0] for a in args):
            return self._build(args[0], visiting)
        # Heterogeneous tuple
        return _opaque()

    def _record_schema(self, tp: type, visiting: set[type]) -> StructuralSchema:
        if tp in visiting:
            return _opaque()
        fields = record_fields(tp)
        if fields is None:
            return _opaque()

        visiting.add(tp)
        try:
            properties: dict[str, StructuralSchema] = {}
            required: list[str] = []
            for field in fields:
                child = self._build(field.annotation, visiting)
                apply_metadata(child, list(field.metadata))
                if field.has_default and (default := json_default(field.default)) is not None:
                    child.default = default
                properties[field.name] = child
                if not (field.has_default or child.nullable):
                    required.append(field.name)
        finally:
            visiting.discard(tp)

        return StructuralSchema(
            kind=SchemaKind.OBJECT,
            properties=properties,
            required=required,
            additional_properties=self.additional_properties,
        )


def _enum_schema(tp: type[Enum]) -> StructuralSchema:
    names = [member.name for member in tp]
    doc = vars(tp).get("__doc__")
    explicit = doc if isinstance(doc, str) and _is_authored_doc(tp, doc) else None
    return StructuralSchema(
        kind=SchemaKind.STRING,
        enum_values=names,
        description=explicit or f"One of: {', '.join(names)}",
    )


def _is_authored_doc(tp: type, doc: str) -> bool:
    """Filter out docstrings the enum machinery synthesizes."""
    text = doc.strip()
    return bool(text) and text != "An enumeration." and not text.startswith(f"{tp.__name__}(")


def _literal_schema(values: tuple[Any, ...]) -> StructuralSchema:
    if all(isinstance(v, bool) for v in values):
        kind = SchemaKind.BOOLEAN
    elif all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        kind = SchemaKind.INTEGER
    elif all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
        kind = SchemaKind.NUMBER
    else:
        kind = SchemaKind.STRING
    enum_values = [v.name if isinstance(v, Enum) else v for v in values]
    return StructuralSchema(kind=kind, enum_values=enum_values)


def _cache_key(tp: Any) -> object | None:
    """Hashable key for ``tp``; None when the annotation cannot be hashed."""
    try:
        hash(tp)
    except TypeError:
        return None
    return tp


# ─────────────────────────────────────────────────────────────────────────────
# Process-wide Engine
# ─────────────────────────────────────────────────────────────────────────────

_engine: TypeSchemaEngine | None = None
_engine_lock = threading.Lock()


def get_schema_engine() -> TypeSchemaEngine:
    """Process-wide engine, configured from settings on first use."""
    global _engine
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                from toolwire.foundation.config import get_settings
                cfg = get_settings().schemas
                _engine = TypeSchemaEngine(
                    cache_enabled=cfg.cache_enabled,
                    additional_properties=cfg.additional_properties,
                )
    return _engine


def reset_schema_engine() -> None:
    """Drop the process-wide engine (it is rebuilt from settings on next use)."""
    global _engine
    with _engine_lock:
        _engine = None


def schema_for(tp: Any) -> StructuralSchema:
    """Schema for ``tp`` from the process-wide engine."""
    return get_schema_engine().schema_for(tp)


def clear_schema_cache() -> None:
    get_schema_engine().clear_cache()
