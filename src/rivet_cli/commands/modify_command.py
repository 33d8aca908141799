"""Command 'modify' of rivet-cli"""

import typer

from rivet_cli.models.requests import TaskUpdate
from rivet_cli.services.context_manager import get_output_format, get_task_service
from rivet_cli.utils.exit_codes import ERROR_INVALID_ARGS
from rivet_cli.utils.ui.formatters import format_output, format_success

from .decorators import AppError, command_wrapper

app = typer.Typer()


@app.command("modify")
@command_wrapper
def modify(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Task id, id prefix or number"),
    description: str | None = typer.Option(None, "--description", "-d", help="New description"),
    project: str | None = typer.Option(None, "--project", "-p", help="Project (empty clears)"),
    tags: list[str] = typer.Option([], "--tag", "-t", help="Add a tag (repeatable)"),
    remove_tags: list[str] = typer.Option([], "--remove-tag", help="Remove a tag (repeatable)"),
    priority: str | None = typer.Option(None, "--priority", help="H, M or L (empty clears)"),
    due: str | None = typer.Option(None, "--due", help="Due date (empty clears)"),
    wait: str | None = typer.Option(None, "--wait", help="Wait date (empty clears)"),
    scheduled: str | None = typer.Option(
        None, "--scheduled", help="Scheduled date (empty clears)"
    ),
    depends: list[str] = typer.Option([], "--depends", help="Replace dependencies (repeatable)"),
    no_depends: bool = typer.Option(False, "--no-depends", help="Remove all dependencies"),
    output: str | None = typer.Option(None, "--output", "-o", help="Output format"),
    json_opt: bool = typer.Option(
        False, "--json", help="Output as JSON (alias for --output json)"
    ),
) -> None:
    """
    Modify a pending task.

    Examples:
      rivet modify 3 --priority H --tag urgent
      rivet modify 3 --due ""
    """
    output = get_output_format(output, json_opt)
    if depends and no_depends:
        raise AppError("--depends and --no-depends are mutually exclusive", ERROR_INVALID_ARGS)

    changes: dict = {"add_tags": tags, "remove_tags": remove_tags}
    for field, value in (
        ("description", description),
        ("project", project),
        ("priority", priority),
        ("due", due),
        ("wait", wait),
        ("scheduled", scheduled),
    ):
        if value is not None:
            changes[field] = value
    if depends:
        changes["depends_on"] = depends
    elif no_depends:
        changes["depends_on"] = []

    task = get_task_service(ctx.obj).update_task(ref, TaskUpdate(**changes))

    if output in ("json", "yaml"):
        format_output(task.model_dump(mode="json"), output)
    else:
        format_success(f"Modified task {task.number} ({task.id})")
