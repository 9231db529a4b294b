"""SQLAlchemy ORM schema for forgeloop storage.

Tables: artifact_files, suggestions, _forgeloop_meta.

SuggestionType, SuggestionPriority and SuggestionStatus are imported from
the domain models -- they are NOT redefined here.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from forgeloop.models.suggestion import (
    SuggestionPriority,
    SuggestionStatus,
    SuggestionType,
)


class Base(DeclarativeBase):
    """Base class for all forgeloop ORM models."""

    pass


class ArtifactFileRow(Base):
    """One artifact file. ``position`` preserves insertion order."""

    __tablename__ = "artifact_files"

    artifact_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    path: Mapped[str] = mapped_column(String(1024), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(String(50), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class SuggestionRow(Base):
    """A suggestion with its changes serialized as JSON."""

    __tablename__ = "suggestions"

    suggestion_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    artifact_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    agent: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[SuggestionType] = mapped_column(nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    affected_files_json: Mapped[list] = mapped_column(JSON, nullable=False)
    changes_json: Mapped[list] = mapped_column(JSON, nullable=False)
    priority: Mapped[SuggestionPriority] = mapped_column(nullable=False)
    status: Mapped[SuggestionStatus] = mapped_column(nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class MetaRow(Base):
    """Key-value metadata, e.g. the schema version."""

    __tablename__ = "_forgeloop_meta"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
