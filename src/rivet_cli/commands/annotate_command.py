"""Commands 'annotate' and 'denotate' of rivet-cli"""

import typer

from rivet_cli.services.context_manager import get_task_service
from rivet_cli.utils.ui.formatters import format_success

from .decorators import command_wrapper

app = typer.Typer()


@app.command("annotate")
@command_wrapper
def annotate(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Task id, id prefix or number"),
    words: list[str] = typer.Argument(..., help="Annotation text"),
) -> None:
    """
    Attach a note to a task.

    Examples:
      rivet annotate 3 Called the plumber, back on Monday
    """
    task = get_task_service(ctx.obj).annotate_task(ref, " ".join(words))
    format_success(f"Annotated task {task.id[:8]} ({len(task.annotations)} note(s))")


@app.command("denotate")
@command_wrapper
def denotate(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Task id, id prefix or number"),
    selector: list[str] = typer.Argument(
        ..., help="1-based annotation number, or text to match (case-insensitive)"
    ),
) -> None:
    """
    Remove notes from a task.

    Examples:
      rivet denotate 3 1
      rivet denotate 3 plumber
    """
    task = get_task_service(ctx.obj).denotate_task(ref, " ".join(selector))
    format_success(f"Denotated task {task.id[:8]} ({len(task.annotations)} note(s) left)")
