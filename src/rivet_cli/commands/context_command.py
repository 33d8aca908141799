"""Named context commands.

A context is a named filter kept in the configuration. While one is active,
``rivet list`` narrows its results to tasks matching it.
"""

import typer
from rich.table import Table

from rivet_cli.models.exceptions import ContextNotFoundError
from rivet_cli.services.config_service import get_config_service
from rivet_cli.services.context_manager import get_task_service
from rivet_cli.utils.exit_codes import ERROR_INVALID_ARGS
from rivet_cli.utils.ui.formatters import console, format_success

from .decorators import AppError, command_wrapper

app = typer.Typer(help="Manage named filter contexts")


@app.command("list")
@command_wrapper
def list_contexts(ctx: typer.Context) -> None:
    """List defined contexts and show the active one."""
    contexts = get_config_service().config.contexts
    active = get_task_service(ctx.find_root().obj).active_context()

    if not contexts:
        console.print("[yellow]No contexts defined. Create one with 'rivet context define'[/yellow]")
    else:
        table = Table(title="Contexts", show_header=True)
        table.add_column("Name", style="cyan")
        table.add_column("Filter")
        table.add_column("Active", justify="center")
        for name, definition in sorted(contexts.items()):
            table.add_row(name, definition, "✓" if name == active else "")
        console.print(table)

    console.print(f"Active context: {active or 'none'}")


@app.command(
    "define",
    context_settings={"ignore_unknown_options": True},
)
@command_wrapper
def define_context(
    name: str = typer.Argument(..., help="Context name"),
    filters: list[str] = typer.Argument(..., help="Filter tokens, e.g. project:work +urgent"),
) -> None:
    """
    Create or replace a context.

    Examples:
      rivet context define work project:work
      rivet context define home -- project:home -someday
    """
    try:
        get_config_service().define_context(name, " ".join(filters))
    except ValueError as e:
        raise AppError(str(e), ERROR_INVALID_ARGS) from e
    format_success(f"Context '{name}' defined")


@app.command("remove")
@command_wrapper
def remove_context(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Context name"),
) -> None:
    """Delete a context; it is deactivated if it was active."""
    try:
        get_config_service().remove_context(name)
    except KeyError as e:
        raise ContextNotFoundError(name) from e

    service = get_task_service(ctx.find_root().obj)
    if service.active_context() == name:
        service.clear_context()
    format_success(f"Context '{name}' removed")


@app.command("use")
@command_wrapper
def use_context(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Context name, or 'none' to clear"),
) -> None:
    """Activate a context."""
    service = get_task_service(ctx.find_root().obj)
    if name in ("none", "clear"):
        service.clear_context()
        format_success("Context cleared")
        return
    service.use_context(name)
    format_success(f"Context '{name}' activated")


@app.command("clear")
@command_wrapper
def clear_context(ctx: typer.Context) -> None:
    """Deactivate the current context."""
    get_task_service(ctx.find_root().obj).clear_context()
    format_success("Context cleared")
