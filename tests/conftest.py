"""Shared test fixtures for forgeloop.

Provides in-memory SQLite engine and session fixtures, store fixtures and
a scripted completion client.
"""

from __future__ import annotations

from collections.abc import Iterable

import pytest
from sqlalchemy.orm import Session, sessionmaker

from forgeloop.exceptions import ProviderError
from forgeloop.llm.protocols import CompletionRequest, CompletionResponse
from forgeloop.models.artifact import ArtifactFile
from forgeloop.models.config import ForgeConfig
from forgeloop.storage.engine import create_forge_engine, init_db
from forgeloop.storage.memory import MemoryArtifactStore, MemorySuggestionStore
from forgeloop.storage.protocols import RecordingSink


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_forge_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    """Session with automatic rollback after each test."""
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sess = SessionLocal()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def artifacts() -> MemoryArtifactStore:
    return MemoryArtifactStore()


@pytest.fixture
def suggestion_store() -> MemorySuggestionStore:
    return MemorySuggestionStore()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def fast_config() -> ForgeConfig:
    """Config with zero retry backoff so retry tests do not sleep."""
    return ForgeConfig(provider_retry_delay=0.0)


# ------------------------------------------------------------------
# Shared test helpers
# ------------------------------------------------------------------


class FakeCompletionClient:
    """Completion client that replays a script of replies.

    Each reply is a string (returned as the completion text), an exception
    instance (raised) or a callable receiving the request. Every request is
    recorded in ``requests``.
    """

    def __init__(self, replies: Iterable[object] = ()) -> None:
        self._replies = list(replies)
        self.requests: list[CompletionRequest] = []
        self.closed = False

    def queue(self, *replies: object) -> None:
        self._replies.extend(replies)

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        self.requests.append(request)
        if not self._replies:
            raise AssertionError(f"Unexpected completion call #{len(self.requests)}")
        reply = self._replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            reply = reply(request)
        return CompletionResponse(text=reply)

    async def aclose(self) -> None:
        self.closed = True

    async def __aenter__(self) -> FakeCompletionClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


def code_block(path: str, content: str, tag: str = "tsx") -> str:
    """Render one annotated fenced block."""
    return f"```{tag}\n// filepath: {path}\n{content}\n```"


def completion(*blocks: tuple[str, str], preamble: str = "Here is the code.") -> str:
    """Render a completion text of annotated blocks."""
    return "\n\n".join([preamble, *(code_block(path, content) for path, content in blocks)])


def make_files(*pairs: tuple[str, str]) -> list[ArtifactFile]:
    return [ArtifactFile(path=path, content=content) for path, content in pairs]


def recoverable(message: str = "HTTP 503: service unavailable") -> ProviderError:
    return ProviderError(message, recoverable=True)


def fatal(message: str = "HTTP 401: invalid api key") -> ProviderError:
    return ProviderError(message, recoverable=False)
