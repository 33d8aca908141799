"""Main entry point for Rivet CLI."""

import typer

from rivet_cli.commands import (
    add_command,
    annotate_command,
    config_command,
    context_command,
    delete_command,
    done_command,
    export_command,
    import_command,
    list_command,
    modify_command,
    purge_command,
    start_command,
    stop_command,
    undo_command,
    version_command,
)
from rivet_cli.commands.decorators import command_wrapper
from rivet_cli.services.config_service import get_config_service
from rivet_cli.utils.ui.formatters import console

app = typer.Typer(
    name="rivet",
    help="A local task manager with filters and dependencies",
    no_args_is_help=True,
)

# Single-command modules contribute their commands at the top level
for _module in (
    add_command,
    list_command,
    done_command,
    delete_command,
    modify_command,
    start_command,
    stop_command,
    annotate_command,
    export_command,
    import_command,
    purge_command,
    undo_command,
    version_command,
):
    app.registered_commands.extend(_module.app.registered_commands)

app.add_typer(config_command.app, name="config", help="Configuration management")
app.add_typer(context_command.app, name="context", help="Named filter contexts")


@app.callback()
@command_wrapper
def main_callback(
    ctx: typer.Context,
    data: str | None = typer.Option(
        None, "--data", help="Task store directory (overrides RIVET_DATA and config)"
    ),
) -> None:
    """A local task manager with filters and dependencies."""
    ctx.obj = {"data": data}
    if not get_config_service().config.output.color:
        console.no_color = True


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
