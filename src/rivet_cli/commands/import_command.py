"""Command 'import' of rivet-cli"""

import sys
from pathlib import Path

import typer
from rich.table import Table

from rivet_cli.models.exceptions import StoreIOError
from rivet_cli.models.requests import ImportResult
from rivet_cli.services.context_manager import get_task_service
from rivet_cli.utils.task_io import parse_import_text
from rivet_cli.utils.ui.formatters import console, format_success

from .decorators import command_wrapper

app = typer.Typer()


@app.command("import")
@command_wrapper
def import_tasks(
    ctx: typer.Context,
    input_file: str | None = typer.Argument(None, help="JSON file to read ('-' for stdin)"),
) -> None:
    """
    Import tasks from a JSON array, a JSON object or JSON Lines.

    Tasks are matched by id: known ones are replaced, new ones are added.

    Examples:
      rivet import backup.json
      rivet export | rivet --data ./copy import
    """
    if input_file in (None, "-"):
        text = sys.stdin.read()
    else:
        path = Path(input_file).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise StoreIOError(f"cannot read {path}: {e}") from e

    result = get_task_service(ctx.obj).import_tasks(parse_import_text(text))
    _print_import_result(result)
    format_success(
        f"Imported {result.total} task(s) ({result.added} added, {result.updated} updated)"
    )


def _print_import_result(result: ImportResult) -> None:
    """Render a Rich table summarising import counts."""
    table = Table(title="Import Results", show_header=True)
    table.add_column("Added", justify="right", style="green")
    table.add_column("Updated", justify="right", style="yellow")
    table.add_row(str(result.added), str(result.updated))
    console.print(table)
