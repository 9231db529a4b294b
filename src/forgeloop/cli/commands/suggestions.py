"""forgeloop suggestions -- list, apply and reject stored suggestions."""

from __future__ import annotations

import click

from forgeloop.models.suggestion import SuggestionStatus


@click.group()
def suggestions() -> None:
    """Manage suggestions produced by review and audit agents."""


@suggestions.command("list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in SuggestionStatus]),
    default=None,
    help="Only show suggestions with this status.",
)
@click.pass_context
def list_suggestions(ctx: click.Context, status: str | None) -> None:
    """List stored suggestions."""
    from forgeloop.cli import _store_session
    from forgeloop.cli.formatting import format_suggestions

    with _store_session(ctx) as (_, store, console):
        wanted = SuggestionStatus(status) if status is not None else None
        format_suggestions(store.list(wanted), console)


@suggestions.command()
@click.argument("suggestion_id")
@click.pass_context
def apply(ctx: click.Context, suggestion_id: str) -> None:
    """Write a suggestion's changes into the artifact and approve it."""
    from forgeloop.cli import _store_session
    from forgeloop.operations.suggestions import apply_suggestion

    with _store_session(ctx) as (artifacts, store, console):
        written = apply_suggestion(suggestion_id, artifacts, store)
        console.print(f"[green]Applied[/green] {suggestion_id}: {len(written)} file(s)")
        for file in written:
            console.print(f"  {file.path}")


@suggestions.command()
@click.argument("suggestion_id")
@click.pass_context
def reject(ctx: click.Context, suggestion_id: str) -> None:
    """Reject a suggestion without touching the artifact."""
    from forgeloop.cli import _store_session
    from forgeloop.operations.suggestions import reject_suggestion

    with _store_session(ctx) as (_, store, console):
        reject_suggestion(suggestion_id, store)
        console.print(f"[yellow]Rejected[/yellow] {suggestion_id}")
