"""Command 'list' of rivet-cli"""

from datetime import UTC, datetime

import typer

from rivet_cli.models.requests import TaskListQuery
from rivet_cli.services.context_manager import get_output_format, get_task_service
from rivet_cli.utils.ui.formatters import format_tasks

from .decorators import command_wrapper

app = typer.Typer()


# Filter tokens such as "-work" look like options, so unknown ones pass through
@app.command(
    "list",
    context_settings={"ignore_unknown_options": True},
)
@command_wrapper
def list_tasks(
    ctx: typer.Context,
    filters: list[str] | None = typer.Argument(
        None, help="Filter tokens: +tag -tag project:x due:today pri:H words"
    ),
    status: str | None = typer.Option(None, "--status", help="Only tasks with this status"),
    project: str | None = typer.Option(None, "--project", help="Only tasks in this project"),
    tag: str | None = typer.Option(None, "--tag", help="Only tasks with this tag"),
    search: str | None = typer.Option(None, "--search", help="Search descriptions"),
    show_all: bool = typer.Option(False, "--all", help="Include deleted tasks"),
    no_context: bool = typer.Option(
        False, "--no-context", help="Ignore the active context"
    ),
    output: str | None = typer.Option(None, "--output", help="Output format"),
    json_opt: bool = typer.Option(
        False, "--json", help="Output as JSON (alias for --output json)"
    ),
) -> None:
    """
    List tasks matching a filter.

    Examples:
      rivet list +urgent project:home
      rivet list due:today
      rivet list -- -someday
      rivet list 12 +ACTIVE --no-context
    """
    output = get_output_format(output, json_opt)
    service = get_task_service(ctx.obj)
    now = datetime.now(UTC)

    query = TaskListQuery(
        filter=filters or [],
        status=status,
        project=project,
        tag=tag,
        search=search,
        include_deleted=show_all,
        ignore_context=no_context,
    )
    tasks = service.list_tasks(query, now)
    format_tasks(tasks, output, now, service.tz)
