"""Measure the context handed to the REPL so the model knows what it holds."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Union

from .errors import InvalidContextError
from .serialization import render_value

__all__ = ["ContextKind", "ContextMetadata", "ContextValue", "describe_context"]


ContextValue = Union[str, list[Any], tuple[Any, ...], Mapping[str, Any]]


class ContextKind(str, Enum):
    """Supported context shapes, named the way the model sees them."""

    STR = "str"
    LIST = "list"
    DICT = "dict"


@dataclass(frozen=True, slots=True)
class ContextMetadata:
    """Chunk lengths and total size of a context, captured at one point in time."""

    lengths: tuple[int, ...]
    total_length: int
    kind: ContextKind

    @classmethod
    def from_lengths(cls, lengths: Iterable[int], kind: ContextKind) -> ContextMetadata:
        snapshot = tuple(lengths)
        return cls(lengths=snapshot, total_length=sum(snapshot), kind=kind)


def describe_context(context: ContextValue) -> ContextMetadata:
    """Classify ``context`` and measure each of its chunks.

    Text is a single chunk. Lists and tuples contribute one chunk per element
    and mappings one chunk per value, in iteration order. Non-text chunks are
    measured by the length of their rendered JSON. An empty list reports a
    single zero-length chunk.
    """
    if isinstance(context, str):
        return ContextMetadata.from_lengths([len(context)], ContextKind.STR)
    if isinstance(context, (list, tuple)):
        if not context:
            return ContextMetadata.from_lengths([0], ContextKind.LIST)
        return ContextMetadata.from_lengths(_chunk_lengths(context), ContextKind.LIST)
    if isinstance(context, Mapping):
        return ContextMetadata.from_lengths(_chunk_lengths(context.values()), ContextKind.DICT)
    raise InvalidContextError(
        f"Context must be a string, list, or mapping; got {type(context).__name__}."
    )


def _chunk_lengths(chunks: Iterable[Any]) -> list[int]:
    return [len(render_value(chunk)) for chunk in chunks]
