"""Rich-based terminal rendering for the jsonmend CLI.

Everything here prints to stderr so that stdout carries only JSON.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from jsonmend.stages import PIPELINE
from jsonmend.types import ErrorLocation, SanitizationResult


console = Console(stderr=True)


def show_fixes(result: SanitizationResult):
    """Display the applied fixes in order."""
    if not result.applied_fixes:
        console.print("[dim]No fixes applied: input was already valid JSON.[/dim]")
        return

    table = Table(title="Applied fixes", border_style="dim")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Fix")
    for i, fix in enumerate(result.applied_fixes, start=1):
        table.add_row(str(i), fix)
    console.print(table)


def show_warnings(warnings: list[str]):
    for warning in warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")


def show_location(location: ErrorLocation):
    """Display where a parse failed, with the surrounding text."""
    header = f"line {location.line}, column {location.column}"
    body = Text()
    body.append(location.message + "\n", style="bold")
    if location.context:
        body.append("\n")
        body.append(location.context, style="dim")
    console.print(
        Panel(
            body,
            title=f"[bold red]Parse error at {header}[/bold red]",
            border_style="red",
            padding=(0, 1),
        )
    )


def show_failure(result: SanitizationResult, location: ErrorLocation | None = None):
    """Display an unrecoverable sanitize() result."""
    for error in result.errors:
        console.print(f"[bold red]Error:[/bold red] {error}")
    if location is not None:
        show_location(location)


def show_stages():
    """Display the repair pipeline in execution order."""
    table = Table(title="Repair stages", border_style="dim")
    table.add_column("Stage", style="bold cyan", no_wrap=True)
    table.add_column("Description")
    for stage in PIPELINE:
        table.add_row(stage.name, stage.description)
    console.print(table)


def show_valid():
    console.print("[green]Valid JSON[/green]")
