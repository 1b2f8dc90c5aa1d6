"""Assemble the message sequence sent to the root model on each RLM turn."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from . import prompts
from .errors import InvalidPromptOptionsError, TranscriptOrderError
from .metadata import ContextMetadata, ContextValue, describe_context

__all__ = [
    "Message",
    "PromptOptions",
    "Role",
    "Transcript",
    "build_initial_messages",
    "build_system_turn",
    "build_user_turn",
]


class Role(str, Enum):
    """Conversation roles understood by chat-style model APIs."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Message:
    """Single chat message handed to the model-query client."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class PromptOptions(BaseModel):
    """Per-turn settings that shape the user prompt."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    root_prompt: Optional[str] = None
    iteration: int = Field(default=0, ge=0)
    context_count: int = Field(default=1, ge=1)
    history_count: int = Field(default=0, ge=0)

    def __init__(self, **values: Any) -> None:
        try:
            super().__init__(**values)
        except ValidationError as error:
            raise InvalidPromptOptionsError(f"Invalid prompt options: {error}") from error

    @classmethod
    def build(cls, **values: Any) -> PromptOptions:
        """Validate ``values``; failures raise ``InvalidPromptOptionsError``."""
        return cls(**values)


def build_system_turn(
    system_prompt: str,
    metadata: ContextMetadata,
    *,
    max_listed_chunks: int = prompts.DEFAULT_MAX_LISTED_CHUNKS,
) -> list[Message]:
    """Return the system prompt followed by an assistant note describing the context."""
    summary = prompts.render_context_summary(
        metadata.kind.value,
        metadata.total_length,
        metadata.lengths,
        limit=max_listed_chunks,
    )
    return [
        Message(role=Role.SYSTEM, content=system_prompt),
        Message(role=Role.ASSISTANT, content=summary),
    ]


def build_user_turn(options: PromptOptions | None = None, **overrides: Any) -> Message:
    """Return the user message for one iteration of the RLM loop.

    The first iteration tells the model to explore the context before
    answering; later iterations point back at the REPL history. Notices for
    multiple contexts and prior histories are appended when they apply.
    Keyword ``overrides`` replace fields of ``options`` (or of the defaults).
    """
    if overrides:
        base = options.model_dump() if options is not None else {}
        options = PromptOptions.build(**{**base, **overrides})
    elif options is None:
        options = PromptOptions()

    prompt = prompts.render_iteration_preamble(options.iteration) + prompts.render_task_prompt(
        options.root_prompt
    )
    notices = (
        prompts.render_context_notice(options.context_count),
        prompts.render_history_notice(options.history_count),
    )
    for notice in notices:
        if notice:
            prompt += prompts.NOTICE_SEPARATOR + notice
    return Message(role=Role.USER, content=prompt)


def build_initial_messages(
    context: ContextValue,
    *,
    system_prompt: str = prompts.RLM_SYSTEM_PROMPT,
    options: PromptOptions | None = None,
    max_listed_chunks: int = prompts.DEFAULT_MAX_LISTED_CHUNKS,
) -> list[Message]:
    """Return the system turn for ``context`` plus the first user turn."""
    metadata = describe_context(context)
    messages = build_system_turn(system_prompt, metadata, max_listed_chunks=max_listed_chunks)
    messages.append(build_user_turn(options))
    return messages


class Transcript:
    """Ordered message history for one RLM conversation.

    The sequence always opens with the ``[system, assistant]`` system turn,
    then alternates one user prompt with one assistant response.
    """

    def __init__(
        self,
        system_prompt: str,
        metadata: ContextMetadata,
        *,
        max_listed_chunks: int = prompts.DEFAULT_MAX_LISTED_CHUNKS,
    ) -> None:
        self._messages: list[Message] = build_system_turn(
            system_prompt,
            metadata,
            max_listed_chunks=max_listed_chunks,
        )
        self._iteration = 0

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def iteration(self) -> int:
        """Number of completed user/assistant exchanges."""
        return self._iteration

    @property
    def awaiting_response(self) -> bool:
        return self._messages[-1].role is Role.USER

    def add_user_turn(self, options: PromptOptions | None = None, **overrides: Any) -> Message:
        """Append the user prompt for the current iteration and return it.

        The iteration defaults to the number of completed exchanges. An
        ``iteration`` passed as a keyword, or set explicitly on ``options``,
        takes precedence.
        """
        if self.awaiting_response:
            raise TranscriptOrderError("The previous user turn has not been answered yet.")
        explicit = "iteration" in overrides or (
            options is not None and "iteration" in options.model_fields_set
        )
        if not explicit:
            overrides["iteration"] = self._iteration
        message = build_user_turn(options, **overrides)
        self._messages.append(message)
        return message

    def add_assistant_response(self, text: str) -> Message:
        """Record the raw model response for the pending user turn."""
        if not self.awaiting_response:
            raise TranscriptOrderError("An assistant response must follow a user turn.")
        message = Message(role=Role.ASSISTANT, content=text)
        self._messages.append(message)
        self._iteration += 1
        return message

    def to_dicts(self) -> list[dict[str, str]]:
        return [message.to_dict() for message in self._messages]

    def __len__(self) -> int:
        return len(self._messages)
