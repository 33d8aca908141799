"""Custom exceptions for Rivet."""

from __future__ import annotations

from pathlib import Path


class RivetError(Exception):
    """Base exception for all Rivet errors."""


class StoreIOError(RivetError):
    """Raised when the store directory or a partition file cannot be read or written."""


class CorruptStoreError(RivetError):
    """Raised when an existing partition file fails to parse.

    Attributes:
        path: Partition file that failed to parse
        line: 1-based line number of the offending record, if known
    """

    def __init__(self, path: Path, line: int | None, reason: str):
        self.path = path
        self.line = line
        self.reason = reason
        where = f"{path} line {line}" if line is not None else str(path)
        super().__init__(f"corrupt store: failed parsing {where}: {reason}")


class TaskValidationError(RivetError):
    """Raised when a task or an operation on it violates a model invariant."""


class DependencyCycleError(TaskValidationError):
    """Raised when adding a dependency would create a cycle."""


class TaskNotFoundError(RivetError):
    """Raised when a task id does not resolve to a stored task."""

    def __init__(self, task_id: str, message: str | None = None):
        self.task_id = task_id
        super().__init__(message or f"task not found: {task_id}")


class InvalidTransitionError(TaskValidationError):
    """Raised when a status change would leave a terminal state."""


class FilterParseError(RivetError):
    """Raised when a filter token cannot be compiled into a predicate."""

    def __init__(self, token: str, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(f"invalid filter token '{token}': {reason}")


class ContextNotFoundError(RivetError):
    """Raised when a named context is not defined."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown context: {name}")
