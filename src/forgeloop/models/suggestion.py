"""Suggestion models for review/audit output."""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


class SuggestionType(str, enum.Enum):
    FIX = "fix"
    IMPROVEMENT = "improvement"
    REFACTOR = "refactor"
    SECURITY = "security"
    PERFORMANCE = "performance"

    @classmethod
    def coerce(cls, value: object) -> SuggestionType:
        """Map free-form payload values onto a known type."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.IMPROVEMENT


class SuggestionPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def coerce(cls, value: object) -> SuggestionPriority:
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.MEDIUM


class SuggestionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class SuggestedChange:
    """Full replacement content for one file."""

    file_path: str
    original_content: str
    new_content: str


@dataclass
class Suggestion:
    """An approvable change proposal.

    Mutable: ``status`` moves from pending to approved or rejected.
    """

    agent: str
    type: SuggestionType
    title: str
    description: str = ""
    affected_files: list[str] = field(default_factory=list)
    suggested_changes: list[SuggestedChange] = field(default_factory=list)
    priority: SuggestionPriority = SuggestionPriority.MEDIUM
    status: SuggestionStatus = SuggestionStatus.PENDING
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def applicable(self) -> bool:
        """Whether the suggestion carries concrete file content."""
        return bool(self.suggested_changes)
