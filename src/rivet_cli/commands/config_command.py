"""Configuration management commands."""

from typing import Any

import typer
from rich.console import Console

from rivet_cli.services.config_service import get_config_service
from rivet_cli.utils.exit_codes import ERROR_INVALID_ARGS
from rivet_cli.utils.ui.formatters import format_error, format_output, format_success

from .decorators import AppError, command_wrapper

app = typer.Typer(help="Configuration management commands")
console = Console()


def _parse_value(value: str) -> Any:
    """Convert a command-line value to the JSON type it most likely means."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered in ("", "null", "none"):
        return None
    return value


@app.command("view")
@command_wrapper
def view_config(
    output: str = typer.Option("pretty", "--output", "-o", help="Output format"),
) -> None:
    """View current configuration."""
    config = get_config_service().config
    if output in ("json", "yaml"):
        format_output(config.model_dump(), output)
        return
    flat = {
        f"{section}.{key}": value
        for section, values in config.model_dump().items()
        for key, value in values.items()
    }
    format_output(flat, output)


@app.command("get")
@command_wrapper
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., output.format)"),
) -> None:
    """Get a configuration value."""
    try:
        value = get_config_service().get(key)
    except KeyError as e:
        raise AppError(f"Configuration key '{key}' not found", ERROR_INVALID_ARGS) from e
    console.print("" if value is None else value)


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., ui.timezone)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    parsed_value = _parse_value(value)
    try:
        get_config_service().set(key, parsed_value)
    except KeyError as e:
        raise AppError(f"Configuration key '{key}' not found", ERROR_INVALID_ARGS) from e
    except ValueError as e:
        raise AppError(str(e), ERROR_INVALID_ARGS) from e
    format_success(f"Configuration '{key}' set to '{parsed_value}'")


@app.command("reset")
@command_wrapper
def reset_config(
    key: str | None = typer.Argument(None, help="Configuration key to reset"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        msg = "entire configuration" if not key else f"'{key}'"
        if not typer.confirm(f"Are you sure you want to reset {msg}?"):
            format_error("Cancelled")
            raise typer.Exit(0)

    try:
        get_config_service().reset(key)
    except KeyError as e:
        raise AppError(f"Configuration key '{key}' not found", ERROR_INVALID_ARGS) from e

    if key:
        format_success(f"Configuration '{key}' reset to default")
    else:
        format_success("Configuration reset to defaults")


@app.command("path")
@command_wrapper
def config_path(
    ctx: typer.Context,
    data: bool = typer.Option(False, "--data", help="Show the task store directory instead"),
) -> None:
    """Show where the configuration file (or the task store) lives."""
    config_svc = get_config_service()
    if data:
        override = (ctx.find_root().obj or {}).get("data")
        console.print(str(config_svc.resolve_data_dir(override)), soft_wrap=True)
    else:
        console.print(str(config_svc.config_path), soft_wrap=True)
