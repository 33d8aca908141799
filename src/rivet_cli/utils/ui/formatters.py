"""Output formatters for different formats."""

from __future__ import annotations

import json
from datetime import UTC, datetime, tzinfo
from typing import Any

import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rivet_cli.models.task import Task

console = Console()

SHORT_ID_LENGTH = 8

PRIORITY_STYLES = {"H": "bold red", "M": "yellow", "L": "dim"}


def format_output(data: Any, output_format: str = "pretty") -> None:
    """Format and display plain data (dicts and lists) in the requested format."""
    if output_format == "json":
        print(json.dumps(data, indent=2, default=str))
    elif output_format == "yaml":
        print(yaml.dump(data, default_flow_style=False, sort_keys=False))
    elif isinstance(data, dict):
        format_single_item(data)
    elif isinstance(data, list) and data and isinstance(data[0], dict):
        format_dict_table(data)
    elif not data:
        console.print("[yellow]No data to display[/yellow]")
    else:
        console.print(data)


def format_tasks(
    tasks: list[Task],
    output_format: str = "pretty",
    now: datetime | None = None,
    tz: tzinfo = UTC,
) -> None:
    """Display tasks; json/yaml output uses the stored representation."""
    if output_format in ("json", "yaml"):
        format_output([task.model_dump(mode="json") for task in tasks], output_format)
        return
    if not tasks:
        console.print("[yellow]No matching tasks[/yellow]")
        return

    now = now or datetime.now(UTC)
    if output_format == "table":
        format_dict_table([task_row(task, now, tz) for task in tasks])
        return

    for task in tasks:
        format_task_item(task, now, tz)
    console.print(f"\n[dim]{len(tasks)} task(s)[/dim]")


def task_row(task: Task, now: datetime, tz: tzinfo = UTC) -> dict[str, Any]:
    """Flatten a task into display columns."""
    return {
        "#": task.number if not task.is_terminal else None,
        "id": task.id[:SHORT_ID_LENGTH],
        "status": "waiting" if task.is_waiting(now) else task.status,
        "priority": task.priority,
        "project": task.project,
        "due": format_due_date(task.due, now, tz) if task.due else None,
        "active": task.is_active(now),
        "tags": task.tags,
        "description": task.description,
    }


def format_task_item(task: Task, now: datetime, tz: tzinfo = UTC) -> None:
    """Print one task on a single line."""
    marker = "✓" if task.status == "completed" else "✗" if task.status == "deleted" else "○"
    number = f"{task.number:>3}" if task.number is not None and not task.is_terminal else "   "
    parts = [f"{marker} [bold]{number}[/bold] [dim]{task.id[:SHORT_ID_LENGTH]}[/dim]"]

    if task.priority:
        parts.append(f"[{PRIORITY_STYLES[task.priority]}]{task.priority}[/]")
    parts.append(escape(task.description))
    if task.project:
        parts.append(f"[cyan]{escape(task.project)}[/cyan]")
    if task.tags:
        parts.append(" ".join(f"[magenta]+{escape(tag)}[/magenta]" for tag in task.tags))
    if task.due:
        style = "red" if task.due < now and not task.is_terminal else "green"
        parts.append(f"[{style}]due {format_due_date(task.due, now, tz)}[/{style}]")
    if task.scheduled and not task.is_terminal:
        parts.append(f"[blue]scheduled {format_due_date(task.scheduled, now, tz)}[/blue]")
    if task.is_active(now):
        parts.append("[bold green](active)[/bold green]")
    if task.is_waiting(now):
        parts.append("[dim](waiting)[/dim]")
    if task.depends_on:
        parts.append(f"[dim](blocked by {len(task.depends_on)})[/dim]")

    console.print(" ".join(parts))
    for note in task.annotations:
        console.print(
            f"        [dim]{note.entry.astimezone(tz):%Y-%m-%d}[/dim] {escape(note.description)}"
        )


def format_dict_table(items: list[dict], wide: bool = False) -> None:
    """Format a list of dictionaries as a table."""
    if not items:
        console.print("[yellow]No items found[/yellow]")
        return

    columns = list(items[0].keys())

    table = Table(show_header=True, header_style="bold magenta", expand=wide)
    for col in columns:
        table.add_column(col.replace("_", " ").title())

    for item in items:
        table.add_row(*(_cell(item.get(col)) for col in columns))

    console.print(table)


def format_single_item(item: dict) -> None:
    """Format a single item as key-value pairs."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")

    for key, value in item.items():
        table.add_row(key.replace("_", " ").title(), _cell(value))

    console.print(table)


def _cell(value: Any) -> str:
    if isinstance(value, bool):
        return "✓" if value else "✗"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if value is None:
        return "-"
    return str(value)


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {escape(message)}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {escape(message)}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {escape(message)}")


def format_due_date(due: datetime, now: datetime, tz: tzinfo = UTC) -> str:
    """Short due date: relative wording near *now*, a date otherwise."""
    local_due = due.astimezone(tz)
    days = (local_due.date() - now.astimezone(tz).date()).days
    if days == 0:
        return f"today {local_due:%H:%M}"
    if days == 1:
        return f"tomorrow {local_due:%H:%M}"
    if days == -1:
        return f"yesterday {local_due:%H:%M}"
    if 1 < days < 7:
        return local_due.strftime("%a %H:%M")
    return local_due.strftime("%Y-%m-%d")
