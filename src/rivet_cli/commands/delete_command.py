"""Command 'delete' of rivet-cli"""

import typer

from rivet_cli.services.context_manager import get_task_service
from rivet_cli.utils.ui.formatters import format_success

from .decorators import command_wrapper

app = typer.Typer()


@app.command("delete")
@command_wrapper
def delete(
    ctx: typer.Context,
    refs: list[str] = typer.Argument(..., help="Task id, id prefix or number"),
) -> None:
    """Move one or more tasks to the deleted partition."""
    service = get_task_service(ctx.obj)
    tasks = [service.get_task(ref) for ref in refs]
    for task in tasks:
        deleted = service.delete_task(task.id)
        format_success(f"Deleted task {deleted.id[:8]}: {deleted.description}")
