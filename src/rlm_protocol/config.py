"""Load and validate the optional YAML configuration for prompt assembly."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError
from .prompts import DEFAULT_MAX_LISTED_CHUNKS, RLM_SYSTEM_PROMPT

__all__ = [
    "DEFAULT_CONFIG_NAME",
    "LoggingSettings",
    "PromptSettings",
    "ProtocolConfig",
    "load_config",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "rlm.yaml"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class _SettingsModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class PromptSettings(_SettingsModel):
    """Settings for the system turn and its context summary."""

    system_prompt: Optional[str] = None
    system_prompt_path: Optional[Path] = None
    max_listed_chunks: int = Field(default=DEFAULT_MAX_LISTED_CHUNKS, ge=1)


class LoggingSettings(_SettingsModel):
    level: LogLevel = "WARNING"


class ProtocolConfig(_SettingsModel):
    """Top-level configuration document."""

    prompt: PromptSettings = Field(default_factory=PromptSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    base_dir: Path = Field(default_factory=Path.cwd, exclude=True)

    def resolve_system_prompt(self) -> str:
        """Return the inline prompt, else the prompt file contents, else the built-in prompt."""
        if self.prompt.system_prompt:
            return self.prompt.system_prompt
        if self.prompt.system_prompt_path is not None:
            path = self.prompt.system_prompt_path
            if not path.is_absolute():
                path = self.base_dir / path
            LOGGER.debug("Reading system prompt from %s", path)
            try:
                return path.read_text(encoding="utf-8")
            except OSError as error:
                raise ConfigError(f"Unable to read system prompt file {path}: {error}") from error
        return RLM_SYSTEM_PROMPT


def load_config(config_path: Path | str | None = None) -> ProtocolConfig:
    """Load configuration from ``config_path``; ``None`` returns the defaults."""
    if config_path is None:
        return ProtocolConfig()

    path = Path(config_path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse config {path}: {error}") from error

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping at the top level.")

    payload: Dict[str, Any] = dict(data)
    payload["base_dir"] = path.resolve().parent
    try:
        config = ProtocolConfig.model_validate(payload)
    except ValidationError as error:
        raise ConfigError(f"Invalid configuration in {path}: {error}") from error

    return config
