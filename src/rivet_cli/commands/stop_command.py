"""Command 'stop' of rivet-cli"""

import typer

from rivet_cli.services.context_manager import get_task_service
from rivet_cli.utils.ui.formatters import format_info, format_success

from .decorators import command_wrapper

app = typer.Typer()


@app.command("stop")
@command_wrapper
def stop(
    ctx: typer.Context,
    refs: list[str] = typer.Argument(..., help="Task id, id prefix or number"),
) -> None:
    """Stop working on tasks."""
    service = get_task_service(ctx.obj)
    for task in [service.get_task(ref) for ref in refs]:
        if task.start is None:
            format_info(f"Task {task.number or task.id[:8]} is not active")
            continue
        stopped = service.stop_task(task.id)
        format_success(f"Stopped task {stopped.number or stopped.id[:8]}: {stopped.description}")
