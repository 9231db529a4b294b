"""Tests for SQLAlchemy ORM schema.

Covers:
- All tables are created
- Schema version is recorded once
- ArtifactFileRow composite PK
- SuggestionRow enum and JSON columns
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError

from forgeloop.models.suggestion import SuggestionPriority, SuggestionStatus, SuggestionType
from forgeloop.storage.engine import SCHEMA_VERSION, init_db
from forgeloop.storage.schema import ArtifactFileRow, MetaRow, SuggestionRow


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TestTableCreation:
    def test_all_tables_exist(self, engine):
        table_names = set(inspect(engine).get_table_names())
        assert {"artifact_files", "suggestions", "_forgeloop_meta"} <= table_names

    def test_schema_version(self, session):
        row = session.execute(
            select(MetaRow).where(MetaRow.key == "schema_version")
        ).scalar_one_or_none()
        assert row is not None
        assert row.value == SCHEMA_VERSION

    def test_init_db_is_idempotent(self, engine, session):
        init_db(engine)
        rows = session.execute(select(MetaRow)).scalars().all()
        assert len(rows) == 1

    def test_suggestion_indexes(self, engine):
        indexed = {
            col
            for index in inspect(engine).get_indexes("suggestions")
            for col in index["column_names"]
        }
        assert {"artifact_id", "status"} <= indexed


class TestArtifactFileRow:
    def _row(self, artifact_id: str, path: str) -> ArtifactFileRow:
        return ArtifactFileRow(
            artifact_id=artifact_id,
            path=path,
            position=0,
            content="x",
            language="typescript",
            updated_at=_now(),
        )

    def test_same_path_in_two_artifacts(self, session):
        session.add_all([self._row("a", "app/page.tsx"), self._row("b", "app/page.tsx")])
        session.commit()
        assert len(session.execute(select(ArtifactFileRow)).scalars().all()) == 2

    def test_duplicate_path_rejected(self, session):
        session.add(self._row("a", "app/page.tsx"))
        session.commit()
        session.expunge_all()
        session.add(self._row("a", "app/page.tsx"))
        with pytest.raises(IntegrityError):
            session.commit()


class TestSuggestionRow:
    def test_round_trip(self, session):
        session.add(
            SuggestionRow(
                suggestion_id="abc123",
                artifact_id="default",
                agent="security",
                type=SuggestionType.SECURITY,
                title="Sanitize input",
                description="",
                affected_files_json=["api/search.ts"],
                changes_json=[{"file_path": "api/search.ts", "original_content": "", "new_content": "y"}],
                priority=SuggestionPriority.HIGH,
                status=SuggestionStatus.PENDING,
                created_at=_now(),
            )
        )
        session.commit()
        row = session.get(SuggestionRow, "abc123")
        assert row.type is SuggestionType.SECURITY
        assert row.priority is SuggestionPriority.HIGH
        assert row.affected_files_json == ["api/search.ts"]
        assert row.changes_json[0]["new_content"] == "y"
