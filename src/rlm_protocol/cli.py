"""Command-line helpers for inspecting RLM contexts, responses, and prompts."""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .composer import PromptOptions, build_system_turn, build_user_turn
from .config import DEFAULT_CONFIG_NAME, ProtocolConfig, load_config
from .errors import ConfigError, RLMProtocolError
from .metadata import ContextValue, describe_context
from .parsing import detect_final_marker, extract_directives, resolve_final_answer
from .prompts import render_context_summary

APP_HELP = "Inspect the textual protocol between an RLM orchestrator and its root model."
BLOCK_SEPARATOR = "-" * 40
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

LOGGER = logging.getLogger(__name__)

app = typer.Typer(help=APP_HELP)


class ContextFormat(str, Enum):
    AUTO = "auto"
    TEXT = "text"
    JSON = "json"


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
) -> None:
    """Configure logging before running a subcommand."""
    if verbose:
        _configure_logging(logging.DEBUG)


def _configure_logging(level: int | str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("rlm_protocol").setLevel(level)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as error:
        raise typer.BadParameter(f"Unable to read {path}: {error}") from error


def load_context(path: Path, context_format: ContextFormat = ContextFormat.AUTO) -> ContextValue:
    """Load a context from disk as raw text or decoded JSON."""
    text = _read_text(path)
    use_json = context_format is ContextFormat.JSON or (
        context_format is ContextFormat.AUTO and path.suffix.lower() == ".json"
    )
    if not use_json:
        return text
    try:
        return json.loads(text)
    except json.JSONDecodeError as error:
        raise typer.BadParameter(f"Context file {path} is not valid JSON: {error}") from error


def _load_environment(path: Optional[Path]) -> Optional[Dict[str, Any]]:
    if path is None:
        return None
    try:
        data = json.loads(_read_text(path))
    except json.JSONDecodeError as error:
        raise typer.BadParameter(f"Environment file {path} is not valid JSON: {error}") from error
    if not isinstance(data, dict):
        raise typer.BadParameter("Environment file must contain a JSON object.")
    return data


def _configure_from_file(config: Optional[Path]) -> ProtocolConfig:
    """Load ``config`` (or ./rlm.yaml when present) and apply its logging level."""
    if config is None:
        default_path = Path(DEFAULT_CONFIG_NAME)
        if not default_path.is_file():
            return load_config(None)
        config = default_path
    try:
        loaded = load_config(config)
    except ConfigError as error:
        typer.echo(f"Failed to load config: {error}")
        raise typer.Exit(code=1) from error
    # --verbose already set an explicit level on the package logger.
    if logging.getLogger("rlm_protocol").level == logging.NOTSET:
        _configure_logging(loaded.logging.level)
    LOGGER.debug("Loaded configuration from %s", config)
    return loaded


@app.command()
def describe(
    context_path: Path = typer.Argument(..., help="File holding the context (text or JSON)."),
    context_format: ContextFormat = typer.Option(
        ContextFormat.AUTO,
        "--format",
        "-f",
        help="How to read the context file.",
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit the metadata as JSON."),
) -> None:
    """Print the size metadata for a context."""
    context = load_context(context_path, context_format)
    try:
        metadata = describe_context(context)
    except RLMProtocolError as error:
        raise typer.BadParameter(str(error)) from error

    if as_json:
        payload = {
            "kind": metadata.kind.value,
            "total_length": metadata.total_length,
            "lengths": list(metadata.lengths),
        }
        typer.echo(json.dumps(payload, indent=2))
        return
    typer.echo(render_context_summary(metadata.kind.value, metadata.total_length, metadata.lengths))


@app.command()
def extract(
    response_path: Path = typer.Argument(..., help="File holding a model response."),
) -> None:
    """Print every ```repl block found in a model response."""
    blocks = extract_directives(_read_text(response_path))
    if not blocks:
        typer.echo("No repl blocks found.")
        raise typer.Exit(code=1)
    LOGGER.debug("Found %d repl block(s) in %s", len(blocks), response_path)
    typer.echo(f"\n{BLOCK_SEPARATOR}\n".join(blocks))


@app.command()
def final(
    response_path: Path = typer.Argument(..., help="File holding a model response."),
    env: Optional[Path] = typer.Option(
        None,
        "--env",
        "-e",
        help="JSON object used to resolve FINAL_VAR markers.",
    ),
) -> None:
    """Print the final answer carried by a model response."""
    text = _read_text(response_path)
    marker = detect_final_marker(text)
    if marker is not None:
        LOGGER.debug("Detected %s marker with argument %r", marker.kind.value, marker.argument)
    answer = resolve_final_answer(text, _load_environment(env))
    if answer is None:
        typer.echo("No final answer found.")
        raise typer.Exit(code=1)
    typer.echo(answer)


@app.command()
def prompt(
    context_path: Path = typer.Argument(..., help="File holding the context (text or JSON)."),
    context_format: ContextFormat = typer.Option(
        ContextFormat.AUTO,
        "--format",
        "-f",
        help="How to read the context file.",
    ),
    iteration: int = typer.Option(0, "--iteration", "-i", help="Loop iteration to render."),
    root_prompt: Optional[str] = typer.Option(
        None,
        "--root-prompt",
        "-r",
        help="Original task to quote in the user turn.",
    ),
    contexts: int = typer.Option(1, "--contexts", help="Number of contexts loaded in the REPL."),
    histories: int = typer.Option(0, "--histories", help="Number of prior histories loaded in the REPL."),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to an rlm.yaml configuration file.",
    ),
) -> None:
    """Print the messages for one turn as JSON."""
    settings = _configure_from_file(config)
    context = load_context(context_path, context_format)
    try:
        metadata = describe_context(context)
        messages = build_system_turn(
            settings.resolve_system_prompt(),
            metadata,
            max_listed_chunks=settings.prompt.max_listed_chunks,
        )
        options = PromptOptions.build(
            root_prompt=root_prompt,
            iteration=iteration,
            context_count=contexts,
            history_count=histories,
        )
    except ConfigError as error:
        typer.echo(f"Failed to load config: {error}")
        raise typer.Exit(code=1) from error
    except RLMProtocolError as error:
        raise typer.BadParameter(str(error)) from error

    messages.append(build_user_turn(options))
    payload = [message.to_dict() for message in messages]
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    app()
