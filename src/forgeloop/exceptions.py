"""Forgeloop exception hierarchy.

All forgeloop-specific exceptions inherit from ForgeError.
"""

from __future__ import annotations


class ForgeError(Exception):
    """Base exception for all forgeloop errors."""


class ProviderError(ForgeError):
    """Raised when the completion provider fails.

    Attributes:
        recoverable: True for rate limits, timeouts and transient server
            errors. Only recoverable errors are retried.
    """

    def __init__(self, message: str, *, recoverable: bool = False) -> None:
        self.recoverable = recoverable
        super().__init__(message)


class ParseFailure(ForgeError):
    """Raised when a completion that should contain files yields none."""

    def __init__(self, agent_id: str, text_length: int) -> None:
        self.agent_id = agent_id
        self.text_length = text_length
        super().__init__(
            f"No files could be extracted from the {agent_id!r} output "
            f"({text_length} chars)"
        )


class ValidationFailure(ForgeError):
    """Raised when critical validation issues are present.

    Handled inside the self-correction loop; never reaches the caller of
    a workflow run on its own.
    """

    def __init__(self, critical_issues: list[str]) -> None:
        self.critical_issues = list(critical_issues)
        super().__init__(
            f"{len(self.critical_issues)} critical issue(s): "
            + "; ".join(self.critical_issues[:3])
        )


class CorrectionExhausted(ForgeError):
    """All correction attempts ran out without reaching an accepted artifact."""

    def __init__(self, attempts: int, critical_issues: list[str]) -> None:
        self.attempts = attempts
        self.critical_issues = list(critical_issues)
        super().__init__(
            f"Correction gave up after {attempts} attempt(s) with "
            f"{len(self.critical_issues)} critical issue(s) remaining"
        )


class StepTransitionError(ForgeError):
    """Raised on an illegal workflow step state transition."""

    def __init__(self, agent_id: str, current: str, target: str) -> None:
        self.agent_id = agent_id
        self.current = current
        self.target = target
        super().__init__(
            f"Step {agent_id!r} cannot move from {current!r} to {target!r}"
        )


class UnknownAgentError(ForgeError):
    """Raised when a workflow names an agent that is not configured."""

    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent not configured: {agent_id}")


class SuggestionError(ForgeError):
    """Raised when a suggestion cannot be applied or transitioned."""


class SuggestionNotFoundError(SuggestionError):
    """Raised when a suggestion id lookup fails."""

    def __init__(self, suggestion_id: str) -> None:
        self.suggestion_id = suggestion_id
        super().__init__(f"Suggestion not found: {suggestion_id}")
