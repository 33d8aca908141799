"""Request models for the task command surface.

Date fields take date expressions (``tomorrow``, ``+3d``, ``2026-02-16``) and
are resolved when the request is applied.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from rivet_cli.models.task import Priority, TaskStatus, parse_priority


def _coerce_priority(value: object) -> object:
    if isinstance(value, str):
        return parse_priority(value) if value else None
    return value


class TaskCreate(BaseModel):
    """Model for creating a new task.

    Attributes:
        description: Task description (required)
        project: Optional project label
        tags: Tags to attach
        priority: H, M or L
        due: Due date expression
        wait: Wait date expression; a future wait creates a waiting task
        scheduled: Scheduled date expression
        depends_on: Ids (or unique id prefixes / numbers) of blocking tasks
    """

    description: str
    project: str | None = None
    tags: list[str] = Field(default_factory=list)
    priority: Priority | None = None
    due: str | None = None
    wait: str | None = None
    scheduled: str | None = None
    depends_on: list[str] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def _parse_priority(cls, v: object) -> object:
        return _coerce_priority(v)


class TaskUpdate(BaseModel):
    """Model for updating an existing task.

    Only fields that were explicitly provided are applied; providing ``None``
    clears the field.
    """

    description: str | None = None
    project: str | None = None
    tags: list[str] | None = None
    add_tags: list[str] = Field(default_factory=list)
    remove_tags: list[str] = Field(default_factory=list)
    priority: Priority | None = None
    due: str | None = None
    wait: str | None = None
    scheduled: str | None = None
    depends_on: list[str] | None = None

    @field_validator("priority", mode="before")
    @classmethod
    def _parse_priority(cls, v: object) -> object:
        return _coerce_priority(v)


class TaskListQuery(BaseModel):
    """Selection for listing tasks.

    Attributes:
        filter: Filter tokens, e.g. ["+urgent", "project:home"]
        status: Only tasks with this status
        project: Exact project
        tag: Required tag
        search: Case-insensitive description substring
        include_deleted: Also search the deleted partition
        ignore_context: Skip the active context filter
    """

    filter: list[str] = Field(default_factory=list)
    status: TaskStatus | None = None
    project: str | None = None
    tag: str | None = None
    search: str | None = None
    include_deleted: bool = False
    ignore_context: bool = False


class ImportResult(BaseModel):
    """Summary of an import."""

    added: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        return self.added + self.updated
