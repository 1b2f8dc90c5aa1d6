"""Exception hierarchy raised when callers violate the protocol contracts."""

from __future__ import annotations

__all__ = [
    "ConfigError",
    "InvalidContextError",
    "InvalidPromptOptionsError",
    "RLMProtocolError",
    "TranscriptOrderError",
]


class RLMProtocolError(ValueError):
    """Base error raised for invalid input handed to the protocol layer."""


class InvalidContextError(RLMProtocolError):
    """Raised when a context is not text, a list, or a mapping."""


class InvalidPromptOptionsError(RLMProtocolError):
    """Raised when prompt options fail validation."""


class TranscriptOrderError(RLMProtocolError):
    """Raised when messages are appended out of turn order."""


class ConfigError(RLMProtocolError):
    """Raised when a configuration file cannot be loaded or validated."""
