"""Shared test fixtures and configuration.

Provides infrastructure to isolate tests from real filesystem state: the log
file, the config directory and the task store all live under *tmp_path*.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from unittest.mock import patch

import pytest

from rivet_cli.models.task import Task
from rivet_cli.services.datastore import DataStore

# 2026-02-16 is a Monday
NOW = datetime(2026, 2, 16, 12, 0, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_logger(tmp_path):
    """Send the application log to *tmp_path* and reset the singleton."""
    import rivet_cli.utils.logger as logger_mod

    logger_mod._logger = None
    logging.getLogger("rivet_cli").handlers.clear()
    with patch("rivet_cli.utils.logger.user_log_dir", return_value=str(tmp_path / "logs")):
        yield
    for handler in logging.getLogger("rivet_cli").handlers:
        handler.close()
    logging.getLogger("rivet_cli").handlers.clear()
    logger_mod._logger = None


# ---------------------------------------------------------------------------
# Config isolation helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def tmp_config(tmp_path, monkeypatch):
    """Provide a real ConfigService backed by a temporary directory.

    Patches platform dirs so config/data files land in *tmp_path* only.
    Also clears the lru_cache so each test gets a fresh service instance.
    """
    from rivet_cli.services.config_service import get_config_service

    monkeypatch.delenv("RIVET_DATA", raising=False)
    config_dir = str(tmp_path / "config")
    data_dir = str(tmp_path / "share")
    get_config_service.cache_clear()
    with patch("rivet_cli.services.config_service.user_config_dir", return_value=config_dir):
        with patch("rivet_cli.services.config_service.user_data_dir", return_value=data_dir):
            from rivet_cli.services.config_service import ConfigService

            svc = ConfigService()
            yield svc
    get_config_service.cache_clear()


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def now() -> datetime:
    """Fixed evaluation instant used across tests."""
    return NOW


@pytest.fixture()
def store_dir(tmp_path):
    return tmp_path / "data"


@pytest.fixture()
def store(store_dir) -> DataStore:
    """DataStore over a fresh directory."""
    return DataStore.open(store_dir)


@pytest.fixture()
def make_task(now):
    """Factory for pending tasks with optional field overrides."""

    def _make(description: str = "Task", **fields) -> Task:
        # model_copy also reaches the frozen id and entry fields
        return Task.new_pending(description, now).model_copy(update=fields)

    return _make
