"""Task service - list/add/update/done/delete over the task store.

This service layer sits between callers (CLI commands, GUI clients) and the
``DataStore`` facade. It resolves user-facing task references, applies
request models and records undo snapshots before every mutation.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, tzinfo
from typing import Any

from pydantic import ValidationError

from rivet_cli.models.exceptions import (
    ContextNotFoundError,
    InvalidTransitionError,
    TaskNotFoundError,
    TaskValidationError,
)
from rivet_cli.models.requests import ImportResult, TaskCreate, TaskListQuery, TaskUpdate
from rivet_cli.models.task import Task
from rivet_cli.services.datastore import DataStore
from rivet_cli.utils.dates import normalize_utc, resolve_instant
from rivet_cli.utils.filter_parser import Filter
from rivet_cli.utils.logger import get_logger


class TaskService:
    """Service for task business logic.

    Task references accept a full id, a unique id prefix, or the display
    number of a pending task.
    """

    def __init__(
        self,
        datastore: DataStore,
        *,
        tz: tzinfo = UTC,
        undo: bool = True,
        contexts: Mapping[str, str] | None = None,
    ):
        """Initialize the task service.

        Args:
            datastore: Store facade for the active data directory
            tz: Timezone for calendar-day date expressions
            undo: Whether mutations record undo snapshots
            contexts: Named filter definitions, e.g. {"work": "project:work"}
        """
        self.datastore = datastore
        self.tz = tz
        self.undo_enabled = undo
        self.contexts = dict(contexts or {})
        self.logger = get_logger()

    def list_tasks(self, query: TaskListQuery | None = None, now: datetime | None = None) -> list[Task]:
        """List tasks matching *query*.

        Pending and completed tasks are searched, plus deleted ones when
        requested or when the query selects the deleted status. Waiting tasks
        are hidden unless the query selects by status, number or id. The
        active context, if any, narrows the selection further.

        Raises:
            FilterParseError: If a filter token is malformed
        """
        query = query or TaskListQuery()
        now = _now(now)
        tokens = query.filter if query.ignore_context else [*self.context_filter(), *query.filter]
        task_filter = Filter.parse(tokens, now, tz=self.tz)
        self.logger.debug("compiled filter: %r", task_filter)

        tasks = self.datastore.load_pending() + self.datastore.load_completed()
        if query.include_deleted or query.status == "deleted" or task_filter.has_status_selector():
            tasks += self.datastore.load_deleted()

        show_waiting = (
            query.status is not None
            or task_filter.has_status_selector()
            or task_filter.has_identity_selector()
        )
        search = query.search.lower() if query.search else None

        selected = []
        for task in tasks:
            if not show_waiting and task.is_waiting(now):
                continue
            if query.status is not None and _view_status(task, now) != query.status:
                continue
            if query.project is not None and task.project != query.project:
                continue
            if query.tag is not None and query.tag not in task.tags:
                continue
            if search is not None and search not in task.description.lower():
                continue
            if task_filter.matches(task, now):
                selected.append(task)
        return selected

    def get_task(self, ref: str) -> Task:
        """Resolve a task reference in any partition.

        Raises:
            TaskNotFoundError: If the reference matches no task or several
        """
        return self._resolve(ref, self.datastore.load_all())

    def add_task(self, create: TaskCreate, now: datetime | None = None) -> Task:
        """Create a new task.

        Raises:
            TaskValidationError: If the request is invalid
            TaskNotFoundError: If a dependency reference is unknown
        """
        now = _now(now)
        wait = self._date(create.wait, now)
        task = Task.new_pending(create.description, now, wait=wait)
        task.project = create.project or None
        task.tags = list(dict.fromkeys(create.tags))
        task.priority = create.priority
        task.due = self._date(create.due, now)
        task.scheduled = self._date(create.scheduled, now)

        everything = self.datastore.load_all()
        depends_on = [self._resolve(ref, everything).id for ref in create.depends_on]

        self._snapshot()
        return self.datastore.add_task(depends_on, task)

    def update_task(self, ref: str, update: TaskUpdate, now: datetime | None = None) -> Task:
        """Apply the explicitly set fields of *update* to a pending task.

        Raises:
            TaskNotFoundError: If the reference matches no pending task
            TaskValidationError: If the result violates a task invariant
        """
        now = _now(now)
        pending = self.datastore.load_pending()
        task = self._resolve(ref, pending)
        changes = update.model_dump(exclude_unset=True)

        if "description" in changes:
            if not (update.description or "").strip():
                raise TaskValidationError("description is required")
            task.description = update.description.strip()
        if "project" in changes:
            task.project = update.project or None
        if "tags" in changes:
            task.tags = list(dict.fromkeys(update.tags or []))
        for tag in update.add_tags:
            if tag not in task.tags:
                task.tags.append(tag)
        task.tags = [tag for tag in task.tags if tag not in update.remove_tags]
        if "priority" in changes:
            task.priority = update.priority
        if "due" in changes:
            task.due = self._date(update.due, now)
        if "wait" in changes:
            task.wait = self._date(update.wait, now)
        if "scheduled" in changes:
            task.scheduled = self._date(update.scheduled, now)
        if "depends_on" in changes:
            everything = self.datastore.load_all()
            depends_on = [self._resolve(dep, everything).id for dep in update.depends_on or []]
            self.datastore.check_dependencies(task.id, depends_on)
            task.depends_on = list(dict.fromkeys(depends_on))

        task.refresh_wait(now)
        task.modified = normalize_utc(now)

        self._snapshot()
        self.datastore.save_pending([task if t.id == task.id else t for t in pending])
        self.logger.info("updated task %s: %s", task.id, sorted(changes))
        return task.copy_task()

    def complete_task(self, ref: str, now: datetime | None = None) -> Task:
        """Mark a pending task done and move it to the completed partition.

        Completing an already completed task returns it unchanged.

        Raises:
            TaskNotFoundError: If the reference matches no task
            InvalidTransitionError: If the task was deleted
        """
        now = _now(now)
        task = self.get_task(ref)
        if task.status == "completed":
            return task
        task.mark_done(now)

        self._snapshot()
        completed = self.datastore.load_completed()
        completed.append(task)
        self.datastore.save_completed(completed)
        self.logger.info("completed task %s", task.id)
        return task

    def delete_task(self, ref: str, now: datetime | None = None) -> Task:
        """Soft-delete a pending task into the deleted partition.

        Raises:
            TaskNotFoundError: If the reference matches no task
            InvalidTransitionError: If the task was completed
        """
        now = _now(now)
        task = self.get_task(ref)
        if task.status == "deleted":
            return task
        task.mark_deleted(now)

        self._snapshot()
        deleted = self.datastore.load_deleted()
        deleted.append(task)
        self.datastore.save_deleted(deleted)
        self.logger.info("deleted task %s", task.id)
        return task

    def start_task(self, ref: str, now: datetime | None = None) -> Task:
        """Mark a pending task as being worked on.

        Starting an active task returns it unchanged.

        Raises:
            TaskNotFoundError: If the reference matches no task
            InvalidTransitionError: If the task is finished or waiting
        """
        now = _now(now)
        task = self.get_task(ref)
        if task.start_work(now):
            self._snapshot()
            self._save_in_place(task)
            self.logger.info("started task %s", task.id)
        return task

    def stop_task(self, ref: str, now: datetime | None = None) -> Task:
        """Clear the start timestamp of a task. A task not started is returned unchanged.

        Raises:
            TaskNotFoundError: If the reference matches no task
        """
        now = _now(now)
        task = self.get_task(ref)
        if task.stop_work(now):
            self._snapshot()
            self._save_in_place(task)
            self.logger.info("stopped task %s", task.id)
        return task

    def annotate_task(self, ref: str, text: str, now: datetime | None = None) -> Task:
        """Append a timestamped note to a pending or completed task.

        Raises:
            TaskNotFoundError: If the reference matches no task
            TaskValidationError: If the text is empty
            InvalidTransitionError: If the task was deleted
        """
        now = _now(now)
        task = self.get_task(ref)
        if task.status == "deleted":
            raise InvalidTransitionError(f"task {task.id} is deleted; cannot annotate it")
        task.annotate(text, now)

        self._snapshot()
        self._save_in_place(task)
        self.logger.info("annotated task %s", task.id)
        return task

    def denotate_task(self, ref: str, selector: str, now: datetime | None = None) -> Task:
        """Remove annotations by 1-based position or by text.

        Raises:
            TaskNotFoundError: If the task or a matching annotation is missing
            InvalidTransitionError: If the task was deleted
        """
        now = _now(now)
        task = self.get_task(ref)
        if task.status == "deleted":
            raise InvalidTransitionError(f"task {task.id} is deleted; cannot denotate it")
        removed = task.denotate(selector, now)
        if not removed:
            raise TaskNotFoundError(selector, f"no annotation matches '{selector}'")

        self._snapshot()
        self._save_in_place(task)
        self.logger.info("removed %d annotation(s) from task %s", removed, task.id)
        return task

    def export_tasks(self, tokens: list[str] | None = None, now: datetime | None = None) -> list[Task]:
        """Tasks to export: pending and completed ones matching *tokens*.

        Waiting tasks are included and the active context is not applied.
        Deleted tasks are searched only when the filter selects by status.

        Raises:
            FilterParseError: If a filter token is malformed
        """
        now = _now(now)
        task_filter = Filter.parse(tokens or [], now, tz=self.tz)
        tasks = self.datastore.load_pending() + self.datastore.load_completed()
        if task_filter.has_status_selector():
            tasks += self.datastore.load_deleted()
        return task_filter.select(tasks, now)

    def import_tasks(self, records: list[dict[str, Any]], now: datetime | None = None) -> ImportResult:
        """Upsert task records by id.

        Records use the export format; Taskwarrior's ``uuid`` and ``depends``
        keys are accepted too. Every record is validated before anything is
        written, so a bad record leaves the store untouched.

        Raises:
            TaskValidationError: If a record is not a valid task
            InvalidTransitionError: If a record would reopen or re-file a
                finished task
        """
        now = _now(now)
        existing = {task.id: task for task in self.datastore.load_all()}
        pending = self.datastore.load_pending()
        next_number = self.datastore.next_number(pending)

        imported: dict[str, Task] = {}
        for index, record in enumerate(records, start=1):
            if not isinstance(record, Mapping):
                raise TaskValidationError(f"import item {index}: expected an object")
            try:
                task = Task.model_validate(_import_fields(record, now))
            except ValidationError as e:
                error = e.errors()[0]
                loc = ".".join(str(part) for part in error["loc"]) or "task"
                raise TaskValidationError(f"import item {index}: {loc}: {error['msg']}") from e
            task.refresh_wait(now)

            previous = existing.get(task.id)
            if previous is not None and previous.is_terminal and task.status != previous.status:
                raise InvalidTransitionError(
                    f"import item {index}: task {task.id} is {previous.status}; "
                    f"cannot import it as {task.status}"
                )

            if task.is_terminal:
                task.number = previous.number if previous is not None else None
            elif previous is not None and previous.number is not None:
                task.number = previous.number
            else:
                task.number = next_number
                next_number += 1
            imported[task.id] = task

        if not imported:
            return ImportResult()

        result = ImportResult(
            added=sum(1 for task_id in imported if task_id not in existing),
            updated=sum(1 for task_id in imported if task_id in existing),
        )

        def merged(current: list[Task], partition: str) -> list[Task]:
            kept = [imported.get(task.id, task) for task in current]
            kept = [task for task in kept if task.partition == partition]
            known = {task.id for task in current}
            kept.extend(
                task
                for task in imported.values()
                if task.partition == partition and task.id not in known
            )
            return kept

        self._snapshot()
        self.datastore.save_completed(merged(self.datastore.load_completed(), "completed"))
        self.datastore.save_deleted(merged(self.datastore.load_deleted(), "deleted"))
        self.datastore.save_pending(merged(self.datastore.load_pending(), "pending"))
        self.logger.info(
            "imported %d task(s): %d added, %d updated", result.total, result.added, result.updated
        )
        return result

    def purge_deleted(self) -> int:
        """Permanently remove deleted tasks. Returns how many were purged."""
        if not self.datastore.load_deleted():
            return 0
        self._snapshot()
        return self.datastore.purge_deleted()

    def context_filter(self) -> list[str]:
        """Filter tokens of the active context, empty when none applies."""
        name = self.datastore.get_active_context()
        if not name:
            return []
        definition = self.contexts.get(name)
        if definition is None:
            self.logger.warning("active context '%s' is not defined; ignoring it", name)
            return []
        return definition.split()

    def active_context(self) -> str | None:
        return self.datastore.get_active_context()

    def use_context(self, name: str) -> None:
        """Make *name* the active context.

        Raises:
            ContextNotFoundError: If no context of that name is defined
        """
        if name not in self.contexts:
            raise ContextNotFoundError(name)
        self.datastore.set_active_context(name)

    def clear_context(self) -> None:
        self.datastore.set_active_context(None)

    def undo(self) -> bool:
        """Revert the most recent mutation. False when there is nothing to undo."""
        return self.datastore.pop_undo_snapshot()

    def _snapshot(self) -> None:
        if self.undo_enabled:
            self.datastore.push_undo_snapshot()

    def _save_in_place(self, task: Task) -> None:
        match task.partition:
            case "pending":
                tasks = self.datastore.load_pending()
                self.datastore.save_pending([task if t.id == task.id else t for t in tasks])
            case "completed":
                tasks = self.datastore.load_completed()
                self.datastore.save_completed([task if t.id == task.id else t for t in tasks])
            case "deleted":
                tasks = self.datastore.load_deleted()
                self.datastore.save_deleted([task if t.id == task.id else t for t in tasks])

    def _date(self, expr: str | None, now: datetime) -> datetime | None:
        if not expr:
            return None
        try:
            return resolve_instant(expr, now, self.tz)
        except ValueError as e:
            raise TaskValidationError(str(e)) from e

    def _resolve(self, ref: str, tasks: list[Task]) -> Task:
        ref = ref.strip()
        if not ref:
            raise TaskNotFoundError(ref, "task reference is empty")

        if ref.isdigit():
            number = int(ref)
            for task in tasks:
                if task.number == number and not task.is_terminal:
                    return task

        exact = [task for task in tasks if task.id == ref]
        if exact:
            return exact[0]

        matches = [task for task in tasks if task.id.startswith(ref.lower())]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise TaskNotFoundError(ref, f"task reference '{ref}' is ambiguous")
        raise TaskNotFoundError(ref)


def _now(now: datetime | None) -> datetime:
    return normalize_utc(now or datetime.now(UTC))


def _import_fields(record: Mapping[str, Any], now: datetime) -> dict[str, Any]:
    """Normalize one import record into Task fields."""
    data = dict(record)
    if "uuid" in data:
        data["id"] = data.pop("uuid")
    elif not isinstance(data.get("id"), str):
        data.pop("id", None)
    if "depends" in data and "depends_on" not in data:
        depends = data.pop("depends")
        if isinstance(depends, str):
            depends = [dep.strip() for dep in depends.split(",") if dep.strip()]
        data["depends_on"] = depends or []

    data.setdefault("entry", now)
    data.setdefault("modified", now)
    status = data.get("status") or "pending"
    if status == "waiting":
        status = "pending"
    data["status"] = status
    if status in ("completed", "deleted"):
        if not data.get("end"):
            data["end"] = data["modified"]
    else:
        data["end"] = None
    return data


def _view_status(task: Task, now: datetime) -> str:
    if task.is_waiting(now):
        return "waiting"
    if task.status == "waiting":
        return "pending"
    return task.status
