"""Completion client protocol and wire types.

Defines the pluggable interface the executor talks to. The built-in
OpenAIClient implements it; tests use scripted fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from forgeloop.models.conversation import ConversationTurn


@dataclass(frozen=True)
class CompletionRequest:
    """One completion call.

    Attributes:
        turns: Ordered conversation, system turn first.
        model: Model identifier, None for the client default.
        temperature: Sampling temperature.
        max_tokens: Maximum tokens to generate.
        credential: API key override for this call.
        provider: Provider name, informational for custom clients.
    """

    turns: tuple[ConversationTurn, ...]
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    credential: str | None = None
    provider: str | None = None

    def messages(self) -> list[dict[str, str]]:
        return [turn.to_dict() for turn in self.turns]


@dataclass(frozen=True)
class CompletionResponse:
    """Generated text plus optional usage info."""

    text: str
    usage: dict | None = None
    model: str | None = None
    extra: dict = field(default_factory=dict)


@runtime_checkable
class CompletionClient(Protocol):
    """Protocol for pluggable completion clients.

    Any object with async complete() and aclose() methods matching this
    signature works. Failures are raised as exceptions; the executor
    classifies them with classify_provider_error().
    """

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Send a conversation, return generated text."""
        ...

    async def aclose(self) -> None:
        """Release underlying resources."""
        ...
