"""Command 'add' of rivet-cli"""

import typer

from rivet_cli.models.requests import TaskCreate
from rivet_cli.services.context_manager import get_output_format, get_task_service
from rivet_cli.utils.ui.formatters import format_output, format_success

from .decorators import command_wrapper

app = typer.Typer()


@app.command("add")
@command_wrapper
def add(
    ctx: typer.Context,
    words: list[str] = typer.Argument(..., help="Task description"),
    project: str | None = typer.Option(None, "--project", "-p", help="Project"),
    tags: list[str] = typer.Option([], "--tag", "-t", help="Tag (repeatable)"),
    priority: str | None = typer.Option(None, "--priority", help="Priority: H, M or L"),
    due: str | None = typer.Option(None, "--due", help="Due date, e.g. tomorrow, +3d, 2026-02-16"),
    wait: str | None = typer.Option(None, "--wait", help="Hide the task until this date"),
    scheduled: str | None = typer.Option(
        None, "--scheduled", help="Date work is planned to begin"
    ),
    depends: list[str] = typer.Option(
        [], "--depends", help="Blocking task id, id prefix or number (repeatable)"
    ),
    output: str | None = typer.Option(None, "--output", "-o", help="Output format"),
    json_opt: bool = typer.Option(
        False, "--json", help="Output as JSON (alias for --output json)"
    ),
) -> None:
    """
    Add a pending task.

    Examples:
      rivet add Buy milk --project home --tag errand
      rivet add Review PR --due tomorrow --priority H
    """
    output = get_output_format(output, json_opt)

    create = TaskCreate(
        description=" ".join(words),
        project=project,
        tags=tags,
        priority=priority,
        due=due,
        wait=wait,
        scheduled=scheduled,
        depends_on=depends,
    )
    task = get_task_service(ctx.obj).add_task(create)

    if output in ("json", "yaml"):
        format_output(task.model_dump(mode="json"), output)
    else:
        format_success(f"Created task {task.number} ({task.id})")
