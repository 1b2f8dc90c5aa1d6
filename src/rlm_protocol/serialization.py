"""Canonical text rendering for context chunks and REPL environment values."""

from __future__ import annotations

import json
import math
import reprlib
from collections.abc import Mapping, Sequence, Set
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any

__all__ = ["ValueKind", "classify_value", "render_value", "to_json_compatible"]


class ValueKind(str, Enum):
    """Shapes a REPL value can take once it crosses into the protocol layer."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    SEQUENCE = "sequence"
    MAP = "map"
    OTHER = "other"


def classify_value(value: Any) -> ValueKind:
    """Return the ``ValueKind`` tag for ``value``."""
    if isinstance(value, str):
        return ValueKind.TEXT
    # bool is a subclass of int, so it must be checked first.
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if value is None:
        return ValueKind.NULL
    if isinstance(value, Mapping):
        return ValueKind.MAP
    if isinstance(value, (Set, Sequence)) and not isinstance(value, (bytes, bytearray)):
        return ValueKind.SEQUENCE
    return ValueKind.OTHER


def to_json_compatible(value: Any) -> Any:
    """Coerce ``value`` into plain JSON types, preserving mapping order.

    Non-finite floats become ``None``. A container that contains itself is
    rendered as an abbreviated repr at the point where the cycle closes.
    """
    return _to_json_compatible(value, frozenset())


def _to_json_compatible(value: Any, active: frozenset[int]) -> Any:
    kind = classify_value(value)
    if kind is ValueKind.NUMBER:
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return value
    if kind in (ValueKind.TEXT, ValueKind.BOOLEAN, ValueKind.NULL):
        return value
    if kind in (ValueKind.MAP, ValueKind.SEQUENCE):
        if id(value) in active:
            return reprlib.repr(value)
        active = active | {id(value)}
        if kind is ValueKind.MAP:
            return {str(key): _to_json_compatible(item, active) for key, item in value.items()}
        return [_to_json_compatible(item, active) for item in value]
    if is_dataclass(value) and not isinstance(value, type):
        return _to_json_compatible(asdict(value), active)
    if hasattr(value, "model_dump"):
        try:
            return _to_json_compatible(value.model_dump(), active)
        except TypeError:
            pass
    if isinstance(value, Path):
        return value.as_posix()
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="ignore")
    return str(value)


def render_value(value: Any) -> str:
    """Render ``value`` as text: strings verbatim, everything else as compact JSON.

    Values too deeply nested to serialise fall back to an abbreviated repr.
    """
    if isinstance(value, str):
        return value
    try:
        return json.dumps(
            to_json_compatible(value),
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except (RecursionError, ValueError):
        return reprlib.repr(value)
