"""SQLAlchemy wiring for the persistent artifact and suggestion stores.

The CLI keeps one SQLite file per project directory; each ``--artifact``
id is a partition of the same tables. Every store write commits on its
own, so a CLI invocation that aborts halfway leaves the files written by
the steps that finished.
"""

from __future__ import annotations

from sqlalchemy import Engine, create_engine, event, select
from sqlalchemy.orm import Session, sessionmaker

from forgeloop.storage.schema import Base, MetaRow

SCHEMA_VERSION = "1"

_SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA busy_timeout=5000",
    "PRAGMA synchronous=NORMAL",
)


def _sqlite_url(db_path: str) -> str:
    return "sqlite://" if db_path == ":memory:" else f"sqlite:///{db_path}"


def create_forge_engine(
    db_path: str = ":memory:",
    *,
    url: str | None = None,
) -> Engine:
    """Open the database that backs ``SqlArtifactStore`` and ``SqlSuggestionStore``.

    ``db_path`` names a SQLite file (``":memory:"`` for a throwaway
    database, as the tests use). ``url`` overrides it with any SQLAlchemy
    URL. On SQLite every new connection switches to WAL with a busy
    timeout, so ``forgeloop suggestions`` can read while a ``run`` writes.
    """
    engine = create_engine(url or _sqlite_url(db_path), echo=False)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _configure_sqlite(dbapi_conn, connection_record):  # type: ignore[no-untyped-def]
            cursor = dbapi_conn.cursor()
            for pragma in _SQLITE_PRAGMAS:
                cursor.execute(pragma)
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Sessions for the SQL stores; rows stay usable after each commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create the artifact, suggestion and meta tables if missing.

    A fresh database is stamped with ``SCHEMA_VERSION``; an existing stamp
    is left alone.
    """
    Base.metadata.create_all(engine)
    with create_session_factory(engine)() as session:
        stamp = session.execute(
            select(MetaRow).where(MetaRow.key == "schema_version")
        ).scalar_one_or_none()
        if stamp is None:
            session.add(MetaRow(key="schema_version", value=SCHEMA_VERSION))
            session.commit()
