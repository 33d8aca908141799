"""Command 'purge' of rivet-cli"""

import typer

from rivet_cli.services.context_manager import get_task_service
from rivet_cli.utils.ui.formatters import console, format_info, format_success

from .decorators import command_wrapper

app = typer.Typer()


@app.command("purge")
@command_wrapper
def purge(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Permanently remove every deleted task."""
    service = get_task_service(ctx.obj)
    if not yes:
        console.print("[bold red]Deleted tasks will be removed from disk.[/bold red]")
        if not typer.confirm("Purge all deleted tasks?"):
            format_info("Cancelled")
            raise typer.Exit(0)

    purged = service.purge_deleted()
    format_success(f"Purged {purged} deleted task(s)")
