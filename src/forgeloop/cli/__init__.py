"""forgeloop CLI -- run workflows and inspect artifacts from the terminal.

This module is NEVER imported from forgeloop/__init__.py.
It is only loaded via the ``forgeloop`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import TYPE_CHECKING

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install forgeloop[cli]"
    ) from None

from forgeloop.cli.formatting import format_error, get_console
from forgeloop.models.artifact import ArtifactFile

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from forgeloop.storage.sqlite import SqlArtifactStore, SqlSuggestionStore

_SKIPPED_DIRS = frozenset({".git", "node_modules", "__pycache__", ".next", "dist", "build"})


@click.group()
@click.option(
    "--db",
    default=".forgeloop.db",
    envvar="FORGELOOP_DB",
    help="Path to the artifact database.",
)
@click.option(
    "--artifact",
    "artifact_id",
    default="default",
    envvar="FORGELOOP_ARTIFACT",
    help="Artifact id inside the database.",
)
@click.pass_context
def cli(ctx: click.Context, db: str, artifact_id: str) -> None:
    """forgeloop: generate, validate and self-correct code artifacts."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db
    ctx.obj["artifact_id"] = artifact_id


def load_directory(root: str) -> list[ArtifactFile]:
    """Read every UTF-8 text file below *root* as an artifact file.

    Paths are relative to *root*; VCS, dependency and build directories
    are skipped.
    """
    files: list[ArtifactFile] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _SKIPPED_DIRS)
        for filename in sorted(filenames):
            full = os.path.join(dirpath, filename)
            try:
                with open(full, encoding="utf-8") as handle:
                    content = handle.read()
            except UnicodeDecodeError:
                continue
            files.append(ArtifactFile(path=os.path.relpath(full, root), content=content))
    return files


@contextmanager
def _store_session(
    ctx: click.Context,
) -> Iterator[tuple[SqlArtifactStore, SqlSuggestionStore, Console]]:
    """Open the artifact database, yield (artifacts, suggestions, console).

    Ensures the session is closed on exit and formats exceptions as CLI
    errors.
    """
    from forgeloop.storage.engine import create_forge_engine, create_session_factory, init_db
    from forgeloop.storage.sqlite import SqlArtifactStore, SqlSuggestionStore

    console = get_console()
    engine = create_forge_engine(ctx.obj["db_path"])
    try:
        init_db(engine)
        session = create_session_factory(engine)()
        try:
            artifact_id = ctx.obj["artifact_id"]
            yield (
                SqlArtifactStore(session, artifact_id),
                SqlSuggestionStore(session, artifact_id),
                console,
            )
        finally:
            session.close()
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None
    finally:
        engine.dispose()


# Register subcommands after cli group is defined
from forgeloop.cli.commands.context import context  # noqa: E402
from forgeloop.cli.commands.parse import parse  # noqa: E402
from forgeloop.cli.commands.run import run  # noqa: E402
from forgeloop.cli.commands.suggestions import suggestions  # noqa: E402
from forgeloop.cli.commands.validate import validate  # noqa: E402

cli.add_command(parse)
cli.add_command(validate)
cli.add_command(context)
cli.add_command(run)
cli.add_command(suggestions)
