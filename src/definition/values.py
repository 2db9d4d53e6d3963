"""JSON value kinds and the structural operations defined over them.

Configuration trees are plain decoded JSON (dict/list/str/int/float/bool/None).
Every operation here classifies a value into a ``ValueKind`` first and
dispatches on that, so booleans are never mistaken for numbers and strings
are never re-transformed.
"""
from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional


class ValueKind(Enum):
    """Tag for a decoded JSON value."""

    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def kind_of(value: Any) -> ValueKind:
    """Classify a decoded JSON value."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.ARRAY
    if isinstance(value, Mapping):
        return ValueKind.OBJECT
    raise TypeError(f"Unsupported configuration value type: {type(value).__name__}")


def transform_value(value: Any, declared_type: str = "") -> Any:
    """Coerce a configuration value into its template-ready form.

    - arrays become their compact JSON text (templates only substitute scalars)
    - numbers declared ``integer`` become base-10 integer strings
    - numbers declared ``number`` become strings with two decimals
    - everything else, including strings, is returned unchanged
    """
    kind = kind_of(value)
    if kind is ValueKind.ARRAY:
        return json.dumps(list(value), separators=(",", ":"))
    if kind is ValueKind.NUMBER:
        if declared_type == "integer":
            return str(int(value))
        if declared_type == "number":
            return f"{float(value):.2f}"
    return value


def merge_config(base: Optional[Mapping[str, Any]], override: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Right-biased recursive merge of ``override`` onto ``base``.

    Where both sides hold an object the two are merged recursively; otherwise
    the override value wins, passed through ``transform_value``. Neither input
    is modified.
    """
    merged: Dict[str, Any] = dict(base or {})
    for key, value in (override or {}).items():
        current = merged.get(key)
        if kind_of(current) is ValueKind.OBJECT and kind_of(value) is ValueKind.OBJECT:
            merged[key] = merge_config(current, value)
        else:
            merged[key] = transform_value(value)
    return merged


def lookup(config: Any, path: Iterable[str]) -> Any:
    """Walk ``path`` through nested objects; None when any segment is missing."""
    node = config
    for segment in path:
        if kind_of(node) is not ValueKind.OBJECT or segment not in node:
            return None
        node = node[segment]
    return node


def lookup_dotted(config: Any, dotted: str) -> Any:
    """``lookup`` for a ``a.b.c`` path."""
    return lookup(config, dotted.split("."))


def is_falsy(value: Any) -> bool:
    """Template falsiness: null, false, the empty string and empty containers."""
    kind = kind_of(value)
    if kind is ValueKind.NULL:
        return True
    if kind is ValueKind.BOOL:
        return not value
    if kind is ValueKind.STRING:
        return not value
    if kind in (ValueKind.ARRAY, ValueKind.OBJECT):
        return len(value) == 0
    return False


def render_scalar(value: Any) -> str:
    """Text substituted into a template for ``value``."""
    kind = kind_of(value)
    if kind is ValueKind.NULL:
        return ""
    if kind is ValueKind.BOOL:
        return "true" if value else "false"
    if kind is ValueKind.NUMBER:
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    if kind is ValueKind.STRING:
        return value
    return json.dumps(value, separators=(",", ":"))
