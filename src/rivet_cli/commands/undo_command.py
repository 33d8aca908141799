"""Command 'undo' of rivet-cli"""

import typer

from rivet_cli.services.context_manager import get_task_service
from rivet_cli.utils.ui.formatters import format_info, format_success

from .decorators import command_wrapper

app = typer.Typer()


@app.command("undo")
@command_wrapper
def undo(ctx: typer.Context) -> None:
    """Revert the most recent change."""
    if get_task_service(ctx.obj).undo():
        format_success("Reverted the last change")
    else:
        format_info("Nothing to undo")
