"""Compiled filter predicates.

Each filter token compiles to exactly one of the frozen dataclasses below.
``evaluate`` is the single place that gives them meaning.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Literal, Union, get_args

from rivet_cli.models.task import Priority, Task, TaskStatus
from rivet_cli.utils.dates import normalize_utc, resolve_instant, resolve_range, start_of_day

VirtualTag = Literal[
    "PENDING",
    "WAITING",
    "COMPLETED",
    "DELETED",
    "ACTIVE",
    "READY",
    "BLOCKED",
    "UNBLOCKED",
    "DUE",
    "OVERDUE",
    "TODAY",
    "TOMORROW",
]

VIRTUAL_TAGS: frozenset[str] = frozenset(get_args(VirtualTag))

# Keyword accepted by ``due:`` that compares against the evaluation instant.
OVERDUE_KEYWORD = "overdue"


@dataclass(frozen=True)
class TagIncluded:
    tag: str


@dataclass(frozen=True)
class TagExcluded:
    tag: str


@dataclass(frozen=True)
class VirtualTagIncluded:
    tag: VirtualTag


@dataclass(frozen=True)
class VirtualTagExcluded:
    tag: VirtualTag


@dataclass(frozen=True)
class ProjectEquals:
    """Exact project match; ``None`` selects tasks without a project."""

    project: str | None


@dataclass(frozen=True)
class DueWithin:
    """Due date inside the calendar range of ``expr``, resolved at match time."""

    expr: str


@dataclass(frozen=True)
class DueBefore:
    expr: str


@dataclass(frozen=True)
class DueAfter:
    expr: str


@dataclass(frozen=True)
class PriorityEquals:
    priority: Priority


@dataclass(frozen=True)
class StatusEquals:
    status: TaskStatus


@dataclass(frozen=True)
class NumberEquals:
    """Display number of a pending or waiting task."""

    number: int


@dataclass(frozen=True)
class IdPrefix:
    prefix: str


@dataclass(frozen=True)
class TextContains:
    """Case-insensitive substring of the description."""

    text: str


Predicate = Union[
    TagIncluded,
    TagExcluded,
    VirtualTagIncluded,
    VirtualTagExcluded,
    ProjectEquals,
    DueWithin,
    DueBefore,
    DueAfter,
    PriorityEquals,
    StatusEquals,
    NumberEquals,
    IdPrefix,
    TextContains,
]

STATUS_PREDICATES = (StatusEquals, VirtualTagIncluded, VirtualTagExcluded)
IDENTITY_PREDICATES = (NumberEquals, IdPrefix)


def _due_in(task: Task, start: datetime, end: datetime) -> bool:
    return task.due is not None and start <= task.due < end


def _status_matches(task: Task, status: TaskStatus, now: datetime) -> bool:
    if status == "waiting":
        return task.is_waiting(now)
    if status == "pending":
        return task.status in ("pending", "waiting") and not task.is_waiting(now)
    return task.status == status


def evaluate_virtual_tag(tag: VirtualTag, task: Task, now: datetime, tz: tzinfo) -> bool:
    match tag:
        case "PENDING":
            return _status_matches(task, "pending", now)
        case "WAITING":
            return task.is_waiting(now)
        case "COMPLETED":
            return task.status == "completed"
        case "DELETED":
            return task.status == "deleted"
        case "ACTIVE":
            return task.is_active(now)
        case "READY":
            return _status_matches(task, "pending", now) and not task.is_blocked
        case "BLOCKED":
            return task.is_blocked
        case "UNBLOCKED":
            return not task.is_blocked
        case "DUE":
            return task.due is not None and task.due < start_of_day(now, tz, 1)
        case "OVERDUE":
            return task.due is not None and task.due < now
        case "TODAY":
            return _due_in(task, start_of_day(now, tz), start_of_day(now, tz, 1))
        case "TOMORROW":
            return _due_in(task, start_of_day(now, tz, 1), start_of_day(now, tz, 2))
    raise AssertionError(f"unhandled virtual tag: {tag}")


def evaluate(predicate: Predicate, task: Task, now: datetime, tz: tzinfo) -> bool:
    """Decide whether *task* satisfies *predicate* at instant *now*."""
    now = normalize_utc(now)
    match predicate:
        case TagIncluded(tag=tag):
            return tag in task.tags
        case TagExcluded(tag=tag):
            return tag not in task.tags
        case VirtualTagIncluded(tag=tag):
            return evaluate_virtual_tag(tag, task, now, tz)
        case VirtualTagExcluded(tag=tag):
            return not evaluate_virtual_tag(tag, task, now, tz)
        case ProjectEquals(project=project):
            return task.project == project
        case DueWithin(expr=expr):
            if expr.lower() == OVERDUE_KEYWORD:
                return task.due is not None and task.due < now
            start, end = resolve_range(expr, now, tz)
            return _due_in(task, start, end)
        case DueBefore(expr=expr):
            return task.due is not None and task.due < resolve_instant(expr, now, tz)
        case DueAfter(expr=expr):
            return task.due is not None and task.due > resolve_instant(expr, now, tz)
        case PriorityEquals(priority=priority):
            return task.priority == priority
        case StatusEquals(status=status):
            return _status_matches(task, status, now)
        case NumberEquals(number=number):
            return task.number == number and not task.is_terminal
        case IdPrefix(prefix=prefix):
            return task.id.lower().startswith(prefix.lower())
        case TextContains(text=text):
            return text.lower() in task.description.lower()
    raise AssertionError(f"unhandled predicate: {predicate!r}")
