"""Bootstrap of the task service for CLI commands.

Commands never open a store themselves: they call :func:`get_task_service`,
which reads the configuration, resolves the data directory, repairs
duplicates left by an interrupted move and wires a ``DataStore`` into a
``TaskService``.
"""

from __future__ import annotations

from typing import Any

from rivet_cli.services.config_service import get_config_service
from rivet_cli.services.datastore import DataStore
from rivet_cli.services.task_service import TaskService
from rivet_cli.utils.ui.formatters import format_warning


def get_task_service(options: dict[str, Any] | None = None) -> TaskService:
    """Open the configured store and return a service over it.

    Args:
        options: Global CLI options (``typer.Context.obj``); a ``data`` entry
            overrides the configured store directory
    """
    config_svc = get_config_service()
    config = config_svc.config
    data_dir = config_svc.resolve_data_dir((options or {}).get("data"))
    datastore = DataStore.open(data_dir)

    removed = datastore.reconcile()
    if removed:
        format_warning(f"Removed {removed} duplicate pending task(s) left by an interrupted save")

    return TaskService(
        datastore, tz=config.tzinfo, undo=config.undo.enabled, contexts=config.contexts
    )


def get_output_format(output: str | None, json_opt: bool = False) -> str:
    """Effective output format: ``--json``, then ``--output``, then config."""
    if json_opt:
        return "json"
    if output:
        return output
    return get_config_service().config.output.format
