"""Locate REPL code blocks and final-answer markers in model responses."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Pattern

from .serialization import render_value

__all__ = [
    "FinalMarker",
    "MarkerKind",
    "detect_final_marker",
    "extract_directives",
    "iter_directives",
    "resolve_final_answer",
]

_REPL_BLOCK_PATTERN: Pattern[str] = re.compile(r"```repl\s*\n(.*?)\n```", re.DOTALL)

_FINAL_VAR_PATTERN: Pattern[str] = re.compile(r"FINAL_VAR\(([^)]+)\)")
_FINAL_DOUBLE_QUOTED_PATTERN: Pattern[str] = re.compile(r'FINAL\("([^"]*)"\)')
_FINAL_SINGLE_QUOTED_PATTERN: Pattern[str] = re.compile(r"FINAL\('([^']*)'\)")
_FINAL_RAW_PATTERN: Pattern[str] = re.compile(r"FINAL\(([^)]+)\)")
_EDGE_QUOTES_PATTERN: Pattern[str] = re.compile(r"^[\"']|[\"']$")


class MarkerKind(str, Enum):
    """Forms of the termination marker, listed in precedence order."""

    VARIABLE = "variable"
    DOUBLE_QUOTED = "double_quoted"
    SINGLE_QUOTED = "single_quoted"
    RAW = "raw"


_MARKER_PATTERNS: tuple[tuple[MarkerKind, Pattern[str]], ...] = (
    (MarkerKind.VARIABLE, _FINAL_VAR_PATTERN),
    (MarkerKind.DOUBLE_QUOTED, _FINAL_DOUBLE_QUOTED_PATTERN),
    (MarkerKind.SINGLE_QUOTED, _FINAL_SINGLE_QUOTED_PATTERN),
    (MarkerKind.RAW, _FINAL_RAW_PATTERN),
)


@dataclass(frozen=True, slots=True)
class FinalMarker:
    """Termination marker found in a response, before any variable lookup."""

    kind: MarkerKind
    argument: str

    @property
    def variable_name(self) -> str | None:
        """Return the environment key a ``FINAL_VAR`` marker refers to."""
        if self.kind is not MarkerKind.VARIABLE:
            return None
        return _EDGE_QUOTES_PATTERN.sub("", self.argument.strip())


def iter_directives(response_text: str) -> Iterator[str]:
    """Yield the body of every ```repl fenced block in source order."""
    for match in _REPL_BLOCK_PATTERN.finditer(response_text):
        yield match.group(1)


def extract_directives(response_text: str) -> list[str]:
    """Return all ```repl code blocks in ``response_text``; empty when there are none."""
    return list(iter_directives(response_text))


def detect_final_marker(response_text: str) -> FinalMarker | None:
    """Return the highest-precedence termination marker present in the text.

    ``FINAL_VAR`` outranks every ``FINAL`` form, and quoted ``FINAL`` forms
    outrank the raw one, wherever they appear in the text. The raw form stops
    at the first closing parenthesis, so nested calls come back truncated.
    """
    for kind, pattern in _MARKER_PATTERNS:
        match = pattern.search(response_text)
        if match:
            return FinalMarker(kind=kind, argument=match.group(1))
    return None


def resolve_final_answer(
    response_text: str,
    environment: Mapping[str, Any] | None = None,
) -> str | None:
    """Return the final answer carried by ``response_text``, if any.

    ``FINAL_VAR`` markers are resolved against ``environment``; a missing
    environment or unknown variable yields ``None``, the same result as a
    response with no marker at all.
    """
    marker = detect_final_marker(response_text)
    if marker is None:
        return None
    if marker.kind is not MarkerKind.VARIABLE:
        return marker.argument

    name = marker.variable_name
    if environment is None or name not in environment:
        return None
    return render_value(environment[name])
