"""CLI for gvt."""

import logging
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .core import ChangeType, StatusReport
from .ops import Verb, dispatch
from .service_types import OperationResult
from .utils import humanize_size


app = typer.Typer(help="""\
Generational versioning for a working directory. Every change to a tracked
file is recorded as a new, immutable, fully-copied generation that can be
inspected and restored by number.""")

console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    """Route gvt's loggers to stderr through rich."""
    level = logging.DEBUG if verbose or os.environ.get("GVT_DEBUG") else logging.WARNING
    logger = logging.getLogger("gvt")
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=err_console, show_path=False))


def _emit(text: str) -> None:
    """Print text verbatim (no markup, highlighting or wrapping)."""
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def _run(verb: Verb, **arguments) -> OperationResult:
    """Dispatch a verb and report its outcome.

    Raises:
        typer.Exit: With the verb's status code on failure
    """
    result = dispatch(verb, **arguments)
    if not result.ok:
        console.print(f"[red]✗[/red] {escape(result.message)}", soft_wrap=True)
        raise typer.Exit(int(result.code))
    return result


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log storage details to stderr"),
):
    _configure_logging(verbose)


@app.command()
def init(
    path: Optional[Path] = typer.Argument(None, help="Directory to initialize (default: current directory)"),
):
    """Initialize a repository with generation 0.

    Examples:
        gvt init
        gvt init my-project
    """
    result = _run(Verb.INIT, path=path)
    _emit(result.message)


@app.command()
def add(
    file: str = typer.Argument(..., help="File to track"),
    message: Optional[str] = typer.Option(None, "-m", "--message", help="Generation message"),
    force: bool = typer.Option(False, "--force", help="Add ignored files anyway"),
):
    """Start tracking a file.

    Creates a new generation unless the file is already tracked.

    Examples:
        gvt add notes.txt
        gvt add src/model.py -m "Add model"
    """
    result = _run(Verb.ADD, file=file, message=message, force=force)
    _emit(result.message)


@app.command()
def detach(
    file: str = typer.Argument(..., help="File to stop tracking"),
    message: Optional[str] = typer.Option(None, "-m", "--message", help="Generation message"),
):
    """Stop tracking a file (doesn't delete it from disk).

    Example:
        gvt detach old.txt -m "Drop old notes"
    """
    result = _run(Verb.DETACH, file=file, message=message)
    _emit(result.message)


@app.command()
def commit(
    file: str = typer.Argument(..., help="Tracked file to record"),
    message: Optional[str] = typer.Option(None, "-m", "--message", help="Generation message"),
):
    """Record the current content of a tracked file.

    Example:
        gvt commit notes.txt -m "Fix typo"
    """
    result = _run(Verb.COMMIT, file=file, message=message)
    _emit(result.message)


@app.command()
def checkout(
    generation: str = typer.Argument(..., help="Generation number to restore"),
    clean: Optional[bool] = typer.Option(
        None,
        "--clean/--additive",
        help="Also remove files the target generation lacks (default: restore_mode from config)",
    ),
):
    """Restore the working tree to a generation.

    Files are overwritten from the generation; other files are left alone
    unless --clean is given.

    Example:
        gvt checkout 3
    """
    result = _run(Verb.CHECKOUT, generation=generation, clean=clean)
    _emit(result.message)


@app.command()
def history(
    last: Optional[int] = typer.Option(None, "--last", "-last", min=1, help="Show only the most recent N generations"),
):
    """List generations, most recent first.

    Example:
        gvt history -last 5
    """
    result = _run(Verb.HISTORY, last=last)
    _emit(result.message)


@app.command()
def version(
    generation: Optional[str] = typer.Argument(None, help="Generation number (default: active generation)"),
):
    """Show a generation's full message.

    Example:
        gvt version 2
    """
    result = _run(Verb.VERSION, generation=generation)
    _emit(result.message)


def display_status(report: StatusReport, console: Console) -> None:
    """Render a status report as a table."""
    console.print(f"[bold]Latest:[/bold] {report.latest}  [bold]Active:[/bold] {report.active}")
    if report.active != report.latest:
        console.print(f"[yellow]Working tree was restored to generation {report.active}[/yellow]")

    if not report.entries:
        console.print("[dim]No tracked files[/dim]")
        return

    table = Table(title=f"Tracked Files ({len(report.entries)})")
    table.add_column("File", style="cyan")
    table.add_column("State")
    table.add_column("Size", justify="right")

    for entry in report.entries:
        state = {
            ChangeType.UNCHANGED: "[green]✓ unchanged[/green]",
            ChangeType.MODIFIED: "[yellow]● modified[/yellow]",
            ChangeType.MISSING: "[red]✗ missing[/red]",
        }[entry.change_type]
        size = entry.working.size if entry.working else entry.stored.size
        table.add_row(escape(entry.path), state, humanize_size(size))

    console.print(table)


@app.command()
def status():
    """Compare tracked files in the working tree with the latest generation."""
    result = _run(Verb.STATUS)
    display_status(result.report, console)
    if result.report.is_clean:
        console.print("[green]✓[/green] Working tree matches the latest generation")
    else:
        console.print(f"[yellow]{escape(result.message)}[/yellow]")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
