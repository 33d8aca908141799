"""Configuration service for managing Rivet configuration.

This module provides the ConfigService class, which is the single source of truth
for configuration in Rivet. It handles:

- Loading and saving config.json
- Dotted-key access (``output.format``, ``ui.timezone``)
- Named context definitions
- Resolving the store directory
"""

from __future__ import annotations

import os
import re
from datetime import UTC, datetime
from functools import lru_cache
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir
from pydantic import BaseModel, ValidationError

from rivet_cli.models.config_models import AppConfig
from rivet_cli.utils.filter_parser import Filter
from rivet_cli.utils.logger import get_logger

DATA_DIR_ENV = "RIVET_DATA"

_CONTEXT_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


class ConfigService:
    """Service for managing application configuration.

    Loads ``config.json`` from the user config directory, creating a default
    one on first use, and exposes values by dotted key.
    """

    def __init__(self):
        """Initialize the config service."""

        self.config_dir = Path(user_config_dir("rivet_cli"))
        self.config_path = self.config_dir / "config.json"
        self.data_dir = Path(user_data_dir("rivet_cli"))

        # Ensure directories exist
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None
        self.logger = get_logger()

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> AppConfig:
        """Load configuration from storage."""
        if self._config is not None:
            return self._config  # Return cached config if already loaded

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # First run: write the defaults so users can find and edit them
            self._config = AppConfig()
            self.save_config()
        except (OSError, ValidationError) as e:
            raise RuntimeError(f"Failed to load config {self.config_path}: {e}") from e

        self.logger.debug("loaded config from %s", self.config_path)
        return self._config

    def save_config(self):
        """Save the current configuration to storage."""
        if self._config is None:
            raise RuntimeError("No configuration to save")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self._config.model_dump_json(indent=4))
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def get(self, key: str) -> Any:
        """Get a configuration value by dot-separated key.

        Raises:
            KeyError: If the key does not exist
        """
        value: Any = self.config
        for part in key.split("."):
            if not isinstance(value, BaseModel) or part not in type(value).model_fields:
                raise KeyError(key)
            value = getattr(value, part)
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key and save.

        Raises:
            KeyError: If the key does not exist
            ValueError: If the value fails validation
        """
        self.get(key)
        parts = key.split(".")
        config_dict = self.config.model_dump()

        current = config_dict
        for part in parts[:-1]:
            current = current[part]
        current[parts[-1]] = value

        try:
            self._config = AppConfig.model_validate(config_dict)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {key}: {e.errors()[0]['msg']}") from e
        self.save_config()

    def reset(self, key: str | None = None) -> None:
        """Reset one key, or the whole configuration, to defaults."""
        if key is None:
            self._config = AppConfig()
            self.save_config()
            return

        default_config = AppConfig()
        value: Any = default_config
        for part in key.split("."):
            if not isinstance(value, BaseModel) or part not in type(value).model_fields:
                raise KeyError(key)
            value = getattr(value, part)
        if isinstance(value, BaseModel):
            value = value.model_dump()
        self.set(key, value)

    def define_context(self, name: str, definition: str) -> None:
        """Create or replace the context *name* and save.

        Raises:
            ValueError: If the name is malformed or the definition is empty
            FilterParseError: If the definition is not a valid filter
        """
        if not _CONTEXT_NAME.match(name) or name in ("none", "clear"):
            raise ValueError(f"invalid context name: {name!r}")
        tokens = definition.split()
        if not tokens:
            raise ValueError("context definition must not be empty")
        Filter.parse(tokens, datetime.now(UTC), tz=self.config.tzinfo)

        self.config.contexts[name] = " ".join(tokens)
        self.save_config()
        self.logger.info("defined context %s: %s", name, definition)

    def remove_context(self, name: str) -> None:
        """Delete the context *name* and save.

        Raises:
            KeyError: If no such context is defined
        """
        if name not in self.config.contexts:
            raise KeyError(name)
        del self.config.contexts[name]
        self.save_config()
        self.logger.info("removed context %s", name)

    def resolve_data_dir(self, override: str | Path | None = None) -> Path:
        """Store directory: explicit override, then RIVET_DATA, then config, then default."""
        if override:
            return Path(override).expanduser()
        env_value = os.environ.get(DATA_DIR_ENV)
        if env_value:
            return Path(env_value).expanduser()
        if self.config.data.location:
            return Path(self.config.data.location).expanduser()
        return self.data_dir / "tasks"


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service
