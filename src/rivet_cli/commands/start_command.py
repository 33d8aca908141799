"""Command 'start' of rivet-cli"""

import typer

from rivet_cli.services.context_manager import get_task_service
from rivet_cli.utils.ui.formatters import format_info, format_success

from .decorators import command_wrapper

app = typer.Typer()


@app.command("start")
@command_wrapper
def start(
    ctx: typer.Context,
    refs: list[str] = typer.Argument(..., help="Task id, id prefix or number"),
) -> None:
    """Mark tasks as being worked on (+ACTIVE)."""
    service = get_task_service(ctx.obj)
    for task in [service.get_task(ref) for ref in refs]:
        if task.start is not None and not task.is_terminal:
            format_info(f"Task {task.number} is already active")
            continue
        started = service.start_task(task.id)
        format_success(f"Started task {started.number}: {started.description}")
