"""forgeloop validate -- score a directory as an artifact."""

from __future__ import annotations

import click

from forgeloop.cli.formatting import format_error, format_validation, get_console
from forgeloop.models.validation import DeploymentMode

_MODES = [m.value for m in DeploymentMode]


@click.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--mode",
    type=click.Choice(_MODES),
    default=DeploymentMode.NONE.value,
    show_default=True,
    help="Deployment mode, enables mode-specific rules.",
)
def validate(directory: str, mode: str) -> None:
    """Validate every text file under DIRECTORY. Exits 1 when invalid."""
    from forgeloop.cli import load_directory
    from forgeloop.engine.validator import Validator

    console = get_console()
    files = load_directory(directory)
    if not files:
        format_error(f"No text files found in {directory}", console)
        raise SystemExit(1)
    result = Validator().validate(files, DeploymentMode(mode))
    console.print(f"[dim]{len(files)} file(s) checked[/dim]")
    format_validation(result, console)
    if not result.is_valid:
        raise SystemExit(1)
