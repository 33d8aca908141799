"""Command 'done' of rivet-cli"""

import typer

from rivet_cli.services.context_manager import get_task_service
from rivet_cli.utils.ui.formatters import format_success

from .decorators import command_wrapper

app = typer.Typer()


@app.command("done")
@command_wrapper
def done(
    ctx: typer.Context,
    refs: list[str] = typer.Argument(..., help="Task id, id prefix or number"),
) -> None:
    """Mark one or more tasks as completed."""
    service = get_task_service(ctx.obj)
    # Resolve every reference first; numbers shift once a task leaves pending
    tasks = [service.get_task(ref) for ref in refs]
    for task in tasks:
        completed = service.complete_task(task.id)
        format_success(f"Completed task {completed.id[:8]}: {completed.description}")
