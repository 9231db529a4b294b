"""Conversation turn model."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    """Speaker of a conversation turn."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ConversationTurn:
    """One role/content turn. Immutable once built."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        """Render in the OpenAI message format."""
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def system(cls, content: str) -> ConversationTurn:
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> ConversationTurn:
        return cls(Role.USER, content)

    @classmethod
    def assistant(cls, content: str) -> ConversationTurn:
        return cls(Role.ASSISTANT, content)
