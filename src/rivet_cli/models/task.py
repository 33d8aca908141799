"""Task data models."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from rivet_cli.models.exceptions import InvalidTransitionError, TaskValidationError
from rivet_cli.utils.dates import format_storage, normalize_utc, parse_storage

TaskStatus = Literal["pending", "waiting", "completed", "deleted"]
Priority = Literal["H", "M", "L"]
Partition = Literal["pending", "completed", "deleted"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "deleted"})
PARTITIONS: tuple[Partition, ...] = ("pending", "completed", "deleted")

PRIORITY_RANKS: dict[str, int] = {"H": 3, "M": 2, "L": 1}

_PRIORITY_ALIASES = {
    "h": "H",
    "high": "H",
    "m": "M",
    "med": "M",
    "medium": "M",
    "l": "L",
    "low": "L",
}


def parse_priority(value: str) -> Priority:
    """Parse a priority value such as ``H``, ``m`` or ``low``.

    Raises:
        ValueError: If the value is not a known priority
    """
    try:
        return _PRIORITY_ALIASES[value.strip().lower()]  # type: ignore[return-value]
    except KeyError:
        raise ValueError(f"unknown priority '{value}' (expected H, M or L)") from None


def _unique(values: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)


def _parse_datetime(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return parse_storage(value)
        except ValueError:
            return value
    return value


class Annotation(BaseModel):
    """Timestamped note attached to a task."""

    entry: datetime
    description: str

    @field_validator("entry", mode="before")
    @classmethod
    def _coerce_entry(cls, value: Any) -> Any:
        return _parse_datetime(value)

    @field_validator("entry")
    @classmethod
    def _entry_to_utc(cls, value: datetime) -> datetime:
        return normalize_utc(value)

    @field_serializer("entry")
    def _serialize_entry(self, value: datetime) -> str:
        return format_storage(value)

    @field_validator("description")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("annotation must not be empty")
        return value


class Task(BaseModel):
    """Task model representing one stored work item.

    Attributes:
        id: Stable unique identifier (UUID4), immutable
        number: Display ordinal assigned at creation
        description: Free-text summary, never empty
        status: pending, waiting, completed or deleted
        entry: Creation timestamp (UTC)
        modified: Last modification timestamp (UTC)
        end: Completion/deletion timestamp, set iff the status is terminal
        due: Optional due timestamp
        wait: Optional timestamp until which the task is hidden as waiting
        scheduled: Optional timestamp at which work is planned to begin
        start: Set while the task is being worked on
        priority: Optional rank, H > M > L
        project: Optional hierarchical label, e.g. "home.garden"
        tags: Tag set (duplicates collapsed)
        depends_on: Ids of the tasks blocking this one
        annotations: Timestamped notes, oldest first
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), frozen=True)
    number: int | None = None
    description: str
    status: TaskStatus = "pending"
    entry: datetime = Field(frozen=True)
    modified: datetime
    end: datetime | None = None
    due: datetime | None = None
    wait: datetime | None = None
    scheduled: datetime | None = None
    start: datetime | None = None
    priority: Priority | None = None
    project: str | None = None
    tags: list[str] = Field(default_factory=list)
    depends_on: list[str] = Field(default_factory=list)
    annotations: list[Annotation] = Field(default_factory=list)

    @field_validator(
        "entry", "modified", "end", "due", "wait", "scheduled", "start", mode="before"
    )
    @classmethod
    def _coerce_datetime(cls, value: Any) -> Any:
        return _parse_datetime(value)

    @field_validator("entry", "modified", "end", "due", "wait", "scheduled", "start")
    @classmethod
    def _to_utc(cls, value: datetime | None) -> datetime | None:
        return normalize_utc(value) if value is not None else None

    @field_serializer("entry", "modified", "end", "due", "wait", "scheduled", "start")
    def _serialize_datetime(self, value: datetime | None) -> str | None:
        return format_storage(value) if value is not None else None

    @field_validator("description")
    @classmethod
    def _non_empty_description(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("description must not be empty")
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, value: Any) -> Any:
        if isinstance(value, str) and value:
            try:
                return parse_priority(value)
            except ValueError:
                return value
        return value or None

    @field_validator("tags", "depends_on")
    @classmethod
    def _collapse_duplicates(cls, value: list[str]) -> list[str]:
        return _unique(value)

    @model_validator(mode="after")
    def _check_invariants(self) -> Task:
        if (self.status in TERMINAL_STATUSES) != (self.end is not None):
            raise ValueError(f"'end' must be set iff status is terminal (status={self.status})")
        if self.id in self.depends_on:
            raise ValueError("a task cannot depend on itself")
        return self

    @classmethod
    def new_pending(
        cls,
        description: str,
        now: datetime,
        next_ordinal: int | None = None,
        *,
        wait: datetime | None = None,
    ) -> Task:
        """Create a new pending task (waiting when *wait* lies in the future).

        Raises:
            TaskValidationError: If the description is empty
        """
        if not description or not description.strip():
            raise TaskValidationError("description is required")
        now = normalize_utc(now)
        status: TaskStatus = "pending"
        if wait is not None and normalize_utc(wait) > now:
            status = "waiting"
        return cls(
            number=next_ordinal,
            description=description.strip(),
            status=status,
            entry=now,
            modified=now,
            wait=wait,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_blocked(self) -> bool:
        return bool(self.depends_on)

    @property
    def priority_rank(self) -> int:
        """Numeric rank used for ordering: H=3, M=2, L=1, none=0."""
        return PRIORITY_RANKS.get(self.priority or "", 0)

    @property
    def partition(self) -> Partition:
        """Partition this task belongs in given its status."""
        if self.status == "completed":
            return "completed"
        if self.status == "deleted":
            return "deleted"
        return "pending"

    def is_waiting(self, now: datetime) -> bool:
        """A task waits while flagged waiting or while its wait date is ahead."""
        if self.is_terminal:
            return False
        if self.status == "waiting":
            return self.wait is None or self.wait > normalize_utc(now)
        return self.wait is not None and self.wait > normalize_utc(now)

    def is_active(self, now: datetime) -> bool:
        """Started, still pending and not waiting."""
        return self.start is not None and not self.is_terminal and not self.is_waiting(now)

    def start_work(self, now: datetime) -> bool:
        """Record that work on the task has begun.

        Returns:
            False if the task was already started

        Raises:
            InvalidTransitionError: If the task is finished or waiting
        """
        if self.is_terminal:
            raise InvalidTransitionError(f"task {self.id} is {self.status}; cannot start it")
        if self.is_waiting(now):
            raise InvalidTransitionError(f"task {self.id} is waiting; cannot start it")
        if self.start is not None:
            return False
        now = normalize_utc(now)
        self.start = now
        self.modified = now
        return True

    def stop_work(self, now: datetime) -> bool:
        """Clear the start timestamp. Returns False if the task was not started."""
        if self.start is None:
            return False
        self.start = None
        self.modified = normalize_utc(now)
        return True

    def annotate(self, text: str, now: datetime) -> Annotation:
        """Append a note.

        Raises:
            TaskValidationError: If the text is empty
        """
        if not text or not text.strip():
            raise TaskValidationError("annotation text is required")
        now = normalize_utc(now)
        note = Annotation(entry=now, description=text.strip())
        self.annotations.append(note)
        self.modified = now
        return note

    def denotate(self, selector: str, now: datetime) -> int:
        """Remove annotations by 1-based position or by case-insensitive text.

        A selector made of digits picks one annotation by position; anything
        else removes every annotation containing it.

        Returns:
            Number of annotations removed
        """
        selector = selector.strip()
        before = len(self.annotations)
        if selector.isdigit():
            index = int(selector)
            if 0 < index <= before:
                del self.annotations[index - 1]
        elif selector:
            needle = selector.lower()
            self.annotations = [
                note for note in self.annotations if needle not in note.description.lower()
            ]
        removed = before - len(self.annotations)
        if removed:
            self.modified = normalize_utc(now)
        return removed

    def refresh_wait(self, now: datetime) -> bool:
        """Move between pending and waiting according to ``wait``.

        Returns:
            True if the status changed
        """
        if self.is_terminal:
            return False
        waiting = self.wait is not None and self.wait > normalize_utc(now)
        target: TaskStatus = "waiting" if waiting else "pending"
        if self.status == target:
            return False
        self.status = target
        self.modified = normalize_utc(now)
        return True

    def mark_done(self, now: datetime) -> None:
        """Complete the task. Completing a completed task is a no-op.

        Raises:
            InvalidTransitionError: If the task was deleted
        """
        self._terminate("completed", now)

    def mark_deleted(self, now: datetime) -> None:
        """Delete the task. Deleting a deleted task is a no-op.

        Raises:
            InvalidTransitionError: If the task was completed
        """
        self._terminate("deleted", now)

    def _terminate(self, target: TaskStatus, now: datetime) -> None:
        if self.status == target:
            return
        if self.is_terminal:
            raise InvalidTransitionError(
                f"task {self.id} is {self.status}; cannot mark it {target}"
            )
        now = normalize_utc(now)
        self.status = target
        self.end = now
        self.start = None
        self.modified = now

    def copy_task(self) -> Task:
        """Independent deep copy of this task."""
        return self.model_copy(deep=True)
