"""SQLAlchemy implementations of the store interfaces.

All stores use SQLAlchemy 2.0-style queries (select() + session.execute()).
Each store takes a Session in its constructor and commits after every
write, so step n's files are durable before step n+1 reads them.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from forgeloop.exceptions import SuggestionNotFoundError
from forgeloop.models.artifact import ArtifactFile, normalize_path
from forgeloop.models.suggestion import SuggestedChange, Suggestion, SuggestionStatus
from forgeloop.storage.protocols import ArtifactStore, SuggestionStore
from forgeloop.storage.schema import ArtifactFileRow, SuggestionRow

DEFAULT_ARTIFACT_ID = "default"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops the offset; stored values are always UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class SqlArtifactStore(ArtifactStore):
    """Artifact store persisted in the ``artifact_files`` table.

    Several artifacts can share a database; each store instance is scoped
    to one ``artifact_id``.
    """

    def __init__(self, session: Session, artifact_id: str = DEFAULT_ARTIFACT_ID) -> None:
        self._session = session
        self._artifact_id = artifact_id

    @property
    def artifact_id(self) -> str:
        return self._artifact_id

    def _row(self, path: str) -> ArtifactFileRow | None:
        stmt = select(ArtifactFileRow).where(
            ArtifactFileRow.artifact_id == self._artifact_id,
            ArtifactFileRow.path == path,
        )
        return self._session.execute(stmt).scalar_one_or_none()

    def list(self) -> list[ArtifactFile]:
        stmt = (
            select(ArtifactFileRow)
            .where(ArtifactFileRow.artifact_id == self._artifact_id)
            .order_by(ArtifactFileRow.position)
        )
        return [
            ArtifactFile(path=row.path, content=row.content, language=row.language)
            for row in self._session.execute(stmt).scalars().all()
        ]

    def upsert(self, path: str, content: str, language: str = "") -> ArtifactFile:
        file = ArtifactFile(path=normalize_path(path), content=content, language=language)
        row = self._row(file.path)
        if row is None:
            position = self._session.execute(
                select(func.coalesce(func.max(ArtifactFileRow.position), -1)).where(
                    ArtifactFileRow.artifact_id == self._artifact_id
                )
            ).scalar_one()
            row = ArtifactFileRow(
                artifact_id=self._artifact_id,
                path=file.path,
                position=position + 1,
                content=file.content,
                language=file.language,
                updated_at=_now(),
            )
            self._session.add(row)
        else:
            row.content = file.content
            row.language = file.language
            row.updated_at = _now()
        self._session.commit()
        return file

    def clear_all(self) -> None:
        self._session.execute(
            delete(ArtifactFileRow).where(ArtifactFileRow.artifact_id == self._artifact_id)
        )
        self._session.commit()

    def get(self, path: str) -> ArtifactFile | None:
        row = self._row(normalize_path(path))
        if row is None:
            return None
        return ArtifactFile(path=row.path, content=row.content, language=row.language)


def _to_row(suggestion: Suggestion, artifact_id: str) -> SuggestionRow:
    return SuggestionRow(
        suggestion_id=suggestion.id,
        artifact_id=artifact_id,
        agent=suggestion.agent,
        type=suggestion.type,
        title=suggestion.title,
        description=suggestion.description,
        affected_files_json=list(suggestion.affected_files),
        changes_json=[
            {
                "file_path": c.file_path,
                "original_content": c.original_content,
                "new_content": c.new_content,
            }
            for c in suggestion.suggested_changes
        ],
        priority=suggestion.priority,
        status=suggestion.status,
        created_at=suggestion.created_at,
    )


def _from_row(row: SuggestionRow) -> Suggestion:
    return Suggestion(
        agent=row.agent,
        type=row.type,
        title=row.title,
        description=row.description,
        affected_files=list(row.affected_files_json),
        suggested_changes=[SuggestedChange(**c) for c in row.changes_json],
        priority=row.priority,
        status=row.status,
        id=row.suggestion_id,
        created_at=_as_utc(row.created_at),
    )


class SqlSuggestionStore(SuggestionStore):
    """Suggestion store persisted in the ``suggestions`` table."""

    def __init__(self, session: Session, artifact_id: str = DEFAULT_ARTIFACT_ID) -> None:
        self._session = session
        self._artifact_id = artifact_id

    def _row(self, suggestion_id: str) -> SuggestionRow:
        stmt = select(SuggestionRow).where(
            SuggestionRow.suggestion_id == suggestion_id,
            SuggestionRow.artifact_id == self._artifact_id,
        )
        row = self._session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise SuggestionNotFoundError(suggestion_id)
        return row

    def add(self, suggestion: Suggestion) -> None:
        self._session.merge(_to_row(suggestion, self._artifact_id))
        self._session.commit()

    def get(self, suggestion_id: str) -> Suggestion:
        return _from_row(self._row(suggestion_id))

    def _set_status(self, suggestion_id: str, status: SuggestionStatus) -> Suggestion:
        row = self._row(suggestion_id)
        row.status = status
        self._session.commit()
        return _from_row(row)

    def approve(self, suggestion_id: str) -> Suggestion:
        return self._set_status(suggestion_id, SuggestionStatus.APPROVED)

    def reject(self, suggestion_id: str) -> Suggestion:
        return self._set_status(suggestion_id, SuggestionStatus.REJECTED)

    def list(self, status: SuggestionStatus | None = None) -> list[Suggestion]:
        stmt = select(SuggestionRow).where(SuggestionRow.artifact_id == self._artifact_id)
        if status is not None:
            stmt = stmt.where(SuggestionRow.status == status)
        stmt = stmt.order_by(SuggestionRow.created_at, SuggestionRow.suggestion_id)
        return [_from_row(row) for row in self._session.execute(stmt).scalars().all()]
