"""Configuration models.

The configuration is a single JSON document validated by pydantic. Every
section has defaults, so an empty ``{}`` file is a valid configuration.
"""

from __future__ import annotations

from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator


class DataConfig(BaseModel):
    """Store location configuration."""

    location: str | None = Field(
        default=None, description="Store directory; defaults to the user data dir"
    )


class OutputConfig(BaseModel):
    """Output configuration."""

    format: Literal["pretty", "table", "json", "yaml"] = Field(default="pretty")
    color: bool = Field(default=True)


class UIConfig(BaseModel):
    """UI configuration."""

    timezone: str = Field(default="UTC")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject zone names the tz database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {v}") from e
        return v


class UndoConfig(BaseModel):
    """Undo journal configuration."""

    enabled: bool = Field(default=True)


class AppConfig(BaseModel):
    """Main Rivet configuration"""

    data: DataConfig = Field(default_factory=DataConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    undo: UndoConfig = Field(default_factory=UndoConfig)
    contexts: dict[str, str] = Field(
        default_factory=dict, description="Named filters applied by list, e.g. work -> project:work"
    )

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.ui.timezone)
