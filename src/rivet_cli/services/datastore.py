"""Task store facade.

``DataStore`` composes record store primitives into task-level operations:
adding tasks with validated dependency links, loading partitions and moving
finished tasks out of the pending partition.

There are no cross-partition transactions. Moves write the destination
partition first and rewrite pending second, so a crash in between leaves a
duplicate that :meth:`DataStore.reconcile` removes, never a lost task.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from rivet_cli.adapters.jsonl.record_store import JsonlRecordStore
from rivet_cli.models.exceptions import (
    DependencyCycleError,
    TaskNotFoundError,
    TaskValidationError,
)
from rivet_cli.models.task import PARTITIONS, Partition, Task
from rivet_cli.repositories.repository import RecordStore
from rivet_cli.utils.logger import get_logger

MAX_UNDO_SNAPSHOTS = 100


class DataStore:
    """Task-level operations over one store directory.

    Every method returns independent copies; mutating a returned task has no
    effect until it is saved back.
    """

    def __init__(self, records: RecordStore):
        """Initialize the facade.

        Args:
            records: RecordStore implementation for partition persistence
        """
        self.records = records
        self.logger = get_logger()

    @classmethod
    def open(cls, path: Path | str) -> DataStore:
        """Open the JSON Lines store at *path*, creating it if needed."""
        return cls(JsonlRecordStore.open(path))

    @property
    def directory(self) -> Path:
        return self.records.directory

    def load_pending(self) -> list[Task]:
        return self._load("pending")

    def load_completed(self) -> list[Task]:
        return self._load("completed")

    def load_deleted(self) -> list[Task]:
        return self._load("deleted")

    def load_all(self) -> list[Task]:
        """Every stored task: pending, then completed, then deleted."""
        tasks: list[Task] = []
        for partition in PARTITIONS:
            tasks.extend(self._load(partition))
        return tasks

    def save_pending(self, tasks: Iterable[Task]) -> None:
        """Rewrite the pending partition.

        Raises:
            TaskValidationError: If a task is completed or deleted
        """
        tasks = _copies(tasks)
        for task in tasks:
            if task.is_terminal:
                raise TaskValidationError(
                    f"task {task.id} is {task.status} and cannot be saved as pending"
                )
        self.records.save("pending", tasks)

    def save_completed(self, tasks: Iterable[Task]) -> None:
        """Rewrite the completed partition and drop those tasks from pending.

        Raises:
            TaskValidationError: If a task is not completed
        """
        self._save_terminal("completed", tasks)

    def save_deleted(self, tasks: Iterable[Task]) -> None:
        """Rewrite the deleted partition and drop those tasks from pending.

        Raises:
            TaskValidationError: If a task is not deleted
        """
        self._save_terminal("deleted", tasks)

    def next_number(self, pending: Iterable[Task] | None = None) -> int:
        """Next display ordinal: one past the highest pending number."""
        if pending is None:
            pending = self.records.load("pending")
        return max((task.number or 0 for task in pending), default=0) + 1

    def find(self, task_id: str) -> Task:
        """Look a task up by id in every partition.

        Raises:
            TaskNotFoundError: If no partition holds the id
        """
        for task in self.load_all():
            if task.id == task_id:
                return task
        raise TaskNotFoundError(task_id)

    def add_task(self, dependency_ids: Iterable[str], task: Task) -> Task:
        """Append *task* to the pending partition with the given dependencies.

        Validation happens before any write, so a rejected task leaves every
        partition untouched.

        Raises:
            TaskValidationError: Empty description, duplicate id, terminal status
                or self-dependency
            TaskNotFoundError: If a dependency id is unknown
            DependencyCycleError: If the dependencies would form a cycle
        """
        task = task.copy_task()
        depends_on = list(dict.fromkeys([*task.depends_on, *dependency_ids]))

        if not task.description.strip():
            raise TaskValidationError("description is required")
        if task.is_terminal:
            raise TaskValidationError(f"cannot add a {task.status} task to pending")
        if task.id in depends_on:
            raise TaskValidationError(f"task {task.id} cannot depend on itself")

        pending = self.records.load("pending")
        graph = self._dependency_graph(pending)
        if task.id in graph:
            raise TaskValidationError(f"task id {task.id} already exists")
        _check_dependencies(graph, task.id, depends_on)

        task.depends_on = depends_on
        if task.number is None:
            task.number = self.next_number(pending)
        pending.append(task)
        self.records.save("pending", pending)
        self.logger.info("added task %s (#%s)", task.id, task.number)
        return task.copy_task()

    def check_dependencies(self, task_id: str, dependency_ids: Iterable[str]) -> None:
        """Validate a new dependency set for an already stored task.

        Raises:
            TaskValidationError: On self-dependency
            TaskNotFoundError: If a dependency id is unknown
            DependencyCycleError: If the dependencies would form a cycle
        """
        _check_dependencies(
            self._dependency_graph(self.records.load("pending")), task_id, list(dependency_ids)
        )

    def reconcile(self) -> int:
        """Drop pending copies of tasks already completed or deleted.

        Returns:
            Number of duplicates removed
        """
        finished = {task.id for task in self.records.load("completed")}
        finished.update(task.id for task in self.records.load("deleted"))
        pending = self.records.load("pending")
        kept = [task for task in pending if task.id not in finished]
        removed = len(pending) - len(kept)
        if removed:
            self.records.save("pending", kept)
            self.logger.warning("reconcile removed %d duplicate pending task(s)", removed)
        return removed

    def purge_deleted(self) -> int:
        """Permanently drop every task in the deleted partition.

        Returns:
            Number of tasks purged
        """
        deleted = self.records.load("deleted")
        if deleted:
            self.records.save("deleted", [])
            self.logger.info("purged %d deleted task(s)", len(deleted))
        return len(deleted)

    def get_active_context(self) -> str | None:
        return self.records.load_context()

    def set_active_context(self, name: str | None) -> None:
        self.records.save_context(name)
        self.logger.info("active context: %s", name or "none")

    def push_undo_snapshot(self) -> None:
        """Record the current state of every partition in the undo journal."""
        snapshots = self.records.load_snapshots()
        snapshots.append({partition: self.records.load(partition) for partition in PARTITIONS})
        self.records.save_snapshots(snapshots[-MAX_UNDO_SNAPSHOTS:])

    def pop_undo_snapshot(self) -> bool:
        """Restore the most recent undo snapshot.

        Destination partitions are restored before pending, like any move.

        Returns:
            False if the journal was empty
        """
        snapshots = self.records.load_snapshots()
        if not snapshots:
            return False
        snapshot = snapshots.pop()
        for partition in ("completed", "deleted", "pending"):
            self.records.save(partition, snapshot[partition])
        self.records.save_snapshots(snapshots)
        self.logger.info("restored undo snapshot (%d left)", len(snapshots))
        return True

    def _dependency_graph(self, pending: list[Task]) -> dict[str, list[str]]:
        graph: dict[str, list[str]] = {}
        for partition in PARTITIONS:
            stored = pending if partition == "pending" else self.records.load(partition)
            for existing in stored:
                graph[existing.id] = existing.depends_on
        return graph

    def _load(self, partition: Partition) -> list[Task]:
        return _copies(self.records.load(partition))

    def _save_terminal(self, partition: Partition, tasks: Iterable[Task]) -> None:
        tasks = _copies(tasks)
        for task in tasks:
            if task.status != partition:
                raise TaskValidationError(
                    f"task {task.id} is {task.status} and cannot be saved as {partition}"
                )

        self.records.save(partition, tasks)

        moved = {task.id for task in tasks}
        pending = self.records.load("pending")
        kept = [task for task in pending if task.id not in moved]
        if len(kept) != len(pending):
            self.records.save("pending", kept)
            self.logger.info(
                "moved %d task(s) from pending to %s", len(pending) - len(kept), partition
            )


def _copies(tasks: Iterable[Task]) -> list[Task]:
    return [task.copy_task() for task in tasks]


def _check_dependencies(graph: dict[str, list[str]], task_id: str, depends_on: list[str]) -> None:
    if task_id in depends_on:
        raise TaskValidationError(f"task {task_id} cannot depend on itself")
    for dep in depends_on:
        if dep not in graph:
            raise TaskNotFoundError(dep, f"dependency not found: {dep}")

    cycle = _find_cycle({**graph, task_id: depends_on}, task_id)
    if cycle:
        raise DependencyCycleError("dependency cycle: " + " -> ".join(cycle))


def _find_cycle(graph: dict[str, list[str]], start: str) -> list[str] | None:
    """Path of a cycle through *start* following dependency edges, if any."""
    stack: list[tuple[str, list[str]]] = [(start, [start])]
    visited: set[str] = set()
    while stack:
        node, path = stack.pop()
        for dep in graph.get(node, ()):
            if dep == start:
                return [*path, start]
            if dep not in visited:
                visited.add(dep)
                stack.append((dep, [*path, dep]))
    return None
