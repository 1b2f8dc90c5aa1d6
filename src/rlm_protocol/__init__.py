"""Textual protocol layer between an RLM orchestrator and its root model."""

from .composer import (
    Message,
    PromptOptions,
    Role,
    Transcript,
    build_initial_messages,
    build_system_turn,
    build_user_turn,
)
from .errors import (
    ConfigError,
    InvalidContextError,
    InvalidPromptOptionsError,
    RLMProtocolError,
    TranscriptOrderError,
)
from .metadata import ContextKind, ContextMetadata, describe_context
from .parsing import (
    FinalMarker,
    MarkerKind,
    detect_final_marker,
    extract_directives,
    iter_directives,
    resolve_final_answer,
)
from .prompts import RLM_SYSTEM_PROMPT
from .serialization import ValueKind, classify_value, render_value

__all__ = [
    "ConfigError",
    "ContextKind",
    "ContextMetadata",
    "FinalMarker",
    "InvalidContextError",
    "InvalidPromptOptionsError",
    "MarkerKind",
    "Message",
    "PromptOptions",
    "RLMProtocolError",
    "RLM_SYSTEM_PROMPT",
    "Role",
    "Transcript",
    "TranscriptOrderError",
    "ValueKind",
    "build_initial_messages",
    "build_system_turn",
    "build_user_turn",
    "classify_value",
    "describe_context",
    "detect_final_marker",
    "extract_directives",
    "iter_directives",
    "render_value",
    "resolve_final_answer",
]
