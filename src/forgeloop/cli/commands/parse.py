"""forgeloop parse -- extract files from a saved completion."""

from __future__ import annotations

import click

from forgeloop.cli.formatting import format_files, get_console


@click.command()
@click.argument("source", type=click.File("r", encoding="utf-8"))
@click.option("--show", is_flag=True, default=False, help="Print each file's content.")
def parse(source, show: bool) -> None:
    """Extract the files a completion text contains (use - for stdin)."""
    from forgeloop.engine.parser import ResponseParser

    console = get_console()
    files = ResponseParser().parse(source.read())
    format_files(files, console)
    if show:
        for file in files:
            console.rule(file.path)
            console.print(file.content, markup=False, highlight=False)
