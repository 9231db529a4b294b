"""forgeloop context -- preview the context selection for a request."""

from __future__ import annotations

import click

from forgeloop.cli.formatting import format_selection, get_console


@click.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.argument("request")
@click.option(
    "--max-chars",
    type=click.IntRange(min=1),
    default=50_000,
    show_default=True,
    help="Context budget in characters.",
)
def context(directory: str, request: str, max_chars: int) -> None:
    """Show which files of DIRECTORY would go into the prompt for REQUEST."""
    from forgeloop.cli import load_directory
    from forgeloop.engine.context import ContextBuilder

    console = get_console()
    selection = ContextBuilder().select(load_directory(directory), request, max_chars)
    format_selection(selection, max_chars, console)
