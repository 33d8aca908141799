"""Command 'export' of rivet-cli"""

from pathlib import Path

import typer

from rivet_cli.models.exceptions import StoreIOError
from rivet_cli.services.context_manager import get_task_service
from rivet_cli.utils.task_io import dump_tasks
from rivet_cli.utils.ui.formatters import format_success

from .decorators import command_wrapper

app = typer.Typer()


@app.command(
    "export",
    context_settings={"ignore_unknown_options": True},
)
@command_wrapper
def export_tasks(
    ctx: typer.Context,
    filters: list[str] | None = typer.Argument(None, help="Filter tokens"),
    output_file: str | None = typer.Option(
        None, "--file", "-f", help="Write to this file instead of stdout"
    ),
) -> None:
    """
    Export pending and completed tasks as a JSON array.

    Waiting tasks are included; the active context is not applied.

    Examples:
      rivet export > backup.json
      rivet export project:home --file home.json
    """
    tasks = get_task_service(ctx.obj).export_tasks(filters or [])
    payload = dump_tasks(tasks)

    if output_file is None:
        print(payload)
        return

    path = Path(output_file).expanduser()
    try:
        path.write_text(payload + "\n", encoding="utf-8")
    except OSError as e:
        raise StoreIOError(f"cannot write {path}: {e}") from e
    format_success(f"Exported {len(tasks)} task(s) to {path}")
