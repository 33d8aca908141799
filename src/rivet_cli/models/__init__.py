"""Rivet domain models.

Pydantic models for tasks, command requests and configuration, the filter
predicate types, and the exception hierarchy.
"""

from .config_models import AppConfig
from .exceptions import (
    ContextNotFoundError,
    CorruptStoreError,
    DependencyCycleError,
    FilterParseError,
    InvalidTransitionError,
    RivetError,
    StoreIOError,
    TaskNotFoundError,
    TaskValidationError,
)
from .requests import ImportResult, TaskCreate, TaskListQuery, TaskUpdate
from .task import PARTITIONS, Annotation, Partition, Priority, Task, TaskStatus

__all__ = [
    # Task models
    "Task",
    "Annotation",
    "TaskStatus",
    "Priority",
    "Partition",
    "PARTITIONS",
    "TaskCreate",
    "TaskUpdate",
    "TaskListQuery",
    "ImportResult",
    # Config
    "AppConfig",
    # Errors
    "RivetError",
    "StoreIOError",
    "CorruptStoreError",
    "TaskValidationError",
    "DependencyCycleError",
    "InvalidTransitionError",
    "TaskNotFoundError",
    "FilterParseError",
    "ContextNotFoundError",
]
