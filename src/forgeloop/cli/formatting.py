"""Rich formatting helpers for the forgeloop CLI.

Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from forgeloop.models.artifact import ArtifactFile, ContextSelection
    from forgeloop.models.suggestion import Suggestion
    from forgeloop.models.validation import ValidationResult
    from forgeloop.models.workflow import WorkflowResult


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)


def format_files(files: list[ArtifactFile], console: Console) -> None:
    """Display extracted files as a table."""
    if not files:
        console.print("[dim]No files.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Path", style="cyan")
    table.add_column("Language", style="dim")
    table.add_column("Lines", justify="right", style="green")
    table.add_column("Chars", justify="right")
    for file in files:
        table.add_row(
            escape(file.path),
            file.language,
            str(file.content.count("\n") + 1),
            str(len(file.content)),
        )
    console.print(table)


def format_validation(result: ValidationResult, console: Console) -> None:
    """Display a validation result with every finding."""
    color = "green" if result.is_valid else "red"
    console.print(f"Score: [{color}]{result.score}[/{color}] ({result})")
    for issue in result.critical_issues:
        console.print(f"  [red]critical[/red]  {escape(issue)}", highlight=False)
    for issue in result.issues:
        console.print(f"  [yellow]advisory[/yellow]  {escape(issue)}", highlight=False)


def format_selection(selection: ContextSelection, max_chars: int, console: Console) -> None:
    """Display which files a context selection kept, truncated or dropped."""
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Path", style="cyan")
    table.add_column("Chars", justify="right", style="green")
    table.add_column("State")
    for selected in selection.included_files:
        state = "[yellow]truncated[/yellow]" if selected.truncated else "included"
        table.add_row(escape(selected.file.path), str(len(selected.content)), state)
    for path in selection.dropped_paths:
        table.add_row(escape(path), "-", "[red]dropped[/red]")
    console.print(table)
    console.print(f"[dim]{selection.total_chars}/{max_chars} chars used[/dim]")


def format_workflow(result: WorkflowResult, console: Console) -> None:
    """Display per-step status of a workflow run."""
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Agent", style="cyan")
    table.add_column("Status")
    table.add_column("Files", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Fixes", justify="right", style="dim")
    table.add_column("Time", justify="right", style="dim")
    styles = {"completed": "green", "error": "red", "running": "yellow", "idle": "dim"}
    for step in result.steps:
        style = styles[step.status.value]
        status = f"[{style}]{step.status.value}[/{style}]"
        if step.from_cache:
            status += " [dim](cached)[/dim]"
        table.add_row(
            step.agent_id,
            status,
            str(len(step.files)),
            str(step.validation.score) if step.validation else "-",
            str(step.correction_attempts),
            f"{step.duration:.1f}s" if step.duration is not None else "-",
        )
    console.print(table)
    if result.failure is not None:
        format_error(f"{result.failure.agent_id}: {result.failure.message}", console)
        console.print(f"[dim]Hint:[/dim] {escape(result.failure.hint)}")


def format_suggestions(suggestions: list[Suggestion], console: Console) -> None:
    """Display suggestions in a compact table."""
    if not suggestions:
        console.print("[dim]No suggestions.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("ID", style="yellow", width=12)
    table.add_column("Agent", style="cyan")
    table.add_column("Type")
    table.add_column("Priority")
    table.add_column("Status", style="dim")
    table.add_column("Title")
    for suggestion in suggestions:
        table.add_row(
            suggestion.id,
            suggestion.agent,
            suggestion.type.value,
            suggestion.priority.value,
            suggestion.status.value,
            escape(suggestion.title),
        )
    console.print(table)
