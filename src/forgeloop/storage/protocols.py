"""Abstract collaborator interfaces for artifact and suggestion storage.

No SQLAlchemy imports here -- pure abstract contracts. Concrete
implementations live in memory.py and sqlite.py.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from forgeloop.models.artifact import ArtifactFile
    from forgeloop.models.suggestion import Suggestion, SuggestionStatus


class ArtifactStore(ABC):
    """Owner of the artifact: an ordered, path-unique set of files.

    The pipeline re-reads the store before every step and writes back
    after it; it never keeps a private copy across steps.
    """

    @abstractmethod
    def list(self) -> list[ArtifactFile]:
        """Return every file in insertion order."""
        ...

    @abstractmethod
    def upsert(self, path: str, content: str, language: str = "") -> ArtifactFile:
        """Create the file if *path* is unseen, else overwrite it in place."""
        ...

    @abstractmethod
    def clear_all(self) -> None:
        """Remove every file."""
        ...

    def get(self, path: str) -> ArtifactFile | None:
        """Return the file at *path*, or None."""
        for file in self.list():
            if file.path == path:
                return file
        return None


class SuggestionStore(ABC):
    """Registry of suggestions awaiting a decision."""

    @abstractmethod
    def add(self, suggestion: Suggestion) -> None:
        ...

    @abstractmethod
    def get(self, suggestion_id: str) -> Suggestion:
        """Return a suggestion. Raises SuggestionNotFoundError if unknown."""
        ...

    @abstractmethod
    def approve(self, suggestion_id: str) -> Suggestion:
        ...

    @abstractmethod
    def reject(self, suggestion_id: str) -> Suggestion:
        ...

    @abstractmethod
    def list(self, status: SuggestionStatus | None = None) -> list[Suggestion]:
        """Return suggestions in insertion order, optionally by status."""
        ...


@runtime_checkable
class ObservabilitySink(Protocol):
    """Append-only event channel. Fire-and-forget; never read back."""

    def emit(self, level: int, agent: str, message: str) -> None:
        ...


class LoggingSink:
    """Forwards sink events to a :mod:`logging` logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("forgeloop.events")

    def emit(self, level: int, agent: str, message: str) -> None:
        self._logger.log(level, "[%s] %s", agent, message)


class RecordingSink:
    """Keeps emitted events in memory, mostly for inspection in tests."""

    def __init__(self) -> None:
        self.events: list[tuple[int, str, str]] = []

    def emit(self, level: int, agent: str, message: str) -> None:
        self.events.append((level, agent, message))

    def messages(self, agent: str | None = None) -> list[str]:
        return [m for _, a, m in self.events if agent is None or a == agent]
