"""Storage layer for forgeloop.

Abstract interfaces, in-memory implementations and SQLAlchemy-backed
implementations of the artifact and suggestion stores.
"""

from forgeloop.storage.engine import create_forge_engine, create_session_factory, init_db
from forgeloop.storage.memory import MemoryArtifactStore, MemorySuggestionStore
from forgeloop.storage.protocols import (
    ArtifactStore,
    LoggingSink,
    ObservabilitySink,
    RecordingSink,
    SuggestionStore,
)
from forgeloop.storage.sqlite import SqlArtifactStore, SqlSuggestionStore

__all__ = [
    "ArtifactStore",
    "LoggingSink",
    "MemoryArtifactStore",
    "MemorySuggestionStore",
    "ObservabilitySink",
    "RecordingSink",
    "SqlArtifactStore",
    "SqlSuggestionStore",
    "SuggestionStore",
    "create_forge_engine",
    "create_session_factory",
    "init_db",
]
