"""JSON Lines record store.

One file per partition inside the store directory, one task object per line::

    <directory>/pending.data
    <directory>/completed.data
    <directory>/deleted.data
    <directory>/undo.data
    <directory>/context.data

Files are always rewritten whole through a temporary file in the same directory
followed by ``os.replace``, so a crash mid-save leaves the previous version in
place.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from rivet_cli.models.exceptions import CorruptStoreError, StoreIOError
from rivet_cli.models.task import PARTITIONS, Partition, Task
from rivet_cli.repositories.repository import RecordStore
from rivet_cli.utils.logger import get_logger

PARTITION_FILES: dict[str, str] = {
    "pending": "pending.data",
    "completed": "completed.data",
    "deleted": "deleted.data",
}
UNDO_FILE = "undo.data"
CONTEXT_FILE = "context.data"


class UndoSnapshot(BaseModel):
    """One undo journal entry: every partition as it was before a mutation."""

    pending: list[Task] = Field(default_factory=list)
    completed: list[Task] = Field(default_factory=list)
    deleted: list[Task] = Field(default_factory=list)


class JsonlRecordStore(RecordStore):
    """Record store keeping each partition in a JSON Lines file."""

    def __init__(self, directory: Path):
        """Bind to *directory* without touching the disk; use :meth:`open`."""
        self.directory = Path(directory)
        self.logger = get_logger()

    @classmethod
    def open(cls, directory: Path | str) -> JsonlRecordStore:
        """Open (creating if needed) the store at *directory*.

        Every existing partition is parsed once so a corrupt store is reported
        up front rather than on first use.

        Raises:
            StoreIOError: If the directory cannot be created or is not writable
            CorruptStoreError: If an existing partition file fails to parse
        """
        store = cls(Path(directory).expanduser())
        store._ensure_layout()
        for partition in PARTITIONS:
            store.load(partition)
        store.load_snapshots()
        store.logger.info("opened record store at %s", store.directory)
        return store

    def partition_path(self, partition: Partition) -> Path:
        try:
            return self.directory / PARTITION_FILES[partition]
        except KeyError:
            raise ValueError(f"unknown partition: {partition!r}") from None

    @property
    def undo_path(self) -> Path:
        return self.directory / UNDO_FILE

    @property
    def context_path(self) -> Path:
        return self.directory / CONTEXT_FILE

    def load(self, partition: Partition) -> list[Task]:
        path = self.partition_path(partition)
        tasks = [
            self._parse_task(path, lineno, line) for lineno, line in self._read_lines(path)
        ]
        self.logger.debug("loaded %d task(s) from %s", len(tasks), path.name)
        return tasks

    def save(self, partition: Partition, tasks: list[Task]) -> None:
        path = self.partition_path(partition)
        self._write_atomic(path, (task.model_dump_json() for task in tasks))
        self.logger.debug("saved %d task(s) to %s", len(tasks), path.name)

    def load_snapshots(self) -> list[dict[str, list[Task]]]:
        path = self.undo_path
        snapshots = []
        for lineno, line in self._read_lines(path):
            try:
                entry = UndoSnapshot.model_validate_json(line)
            except ValidationError as e:
                raise CorruptStoreError(path, lineno, _first_error(e)) from e
            snapshots.append(
                {"pending": entry.pending, "completed": entry.completed, "deleted": entry.deleted}
            )
        return snapshots

    def save_snapshots(self, snapshots: list[dict[str, list[Task]]]) -> None:
        lines = (UndoSnapshot(**snapshot).model_dump_json() for snapshot in snapshots)
        self._write_atomic(self.undo_path, lines)
        self.logger.debug("saved %d undo snapshot(s)", len(snapshots))

    def load_context(self) -> str | None:
        lines = self._read_lines(self.context_path)
        return lines[0][1] if lines else None

    def save_context(self, name: str | None) -> None:
        self._write_atomic(self.context_path, [name] if name else [])
        self.logger.debug("active context set to %s", name)

    def _ensure_layout(self) -> None:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreIOError(f"failed to create {self.directory}: {e}") from e

        if not self.directory.is_dir():
            raise StoreIOError(f"{self.directory} is not a directory")
        if not os.access(self.directory, os.W_OK | os.X_OK):
            raise StoreIOError(f"{self.directory} is not writable")

        for path in [
            *(self.partition_path(p) for p in PARTITIONS),
            self.undo_path,
            self.context_path,
        ]:
            if path.exists():
                continue
            try:
                path.touch()
            except OSError as e:
                raise StoreIOError(f"failed to create {path}: {e}") from e

    def _read_lines(self, path: Path) -> list[tuple[int, str]]:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except UnicodeDecodeError as e:
            raise CorruptStoreError(path, None, f"not valid UTF-8: {e}") from e
        except OSError as e:
            raise StoreIOError(f"failed reading {path}: {e}") from e

        # JSON may carry U+2028, U+2029 or NEL raw inside strings; only "\n" ends a record
        return [
            (lineno, line.strip())
            for lineno, line in enumerate(raw.split("\n"), start=1)
            if line.strip()
        ]

    def _parse_task(self, path: Path, lineno: int, line: str) -> Task:
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as e:
            raise CorruptStoreError(path, lineno, f"invalid JSON: {e.msg}") from e
        if not isinstance(payload, dict):
            raise CorruptStoreError(path, lineno, "expected a JSON object")
        try:
            return Task.model_validate(payload)
        except ValidationError as e:
            raise CorruptStoreError(path, lineno, _first_error(e)) from e

    def _write_atomic(self, path: Path, lines: Iterable[str]) -> None:
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.directory,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                for line in lines:
                    tmp.write(line)
                    tmp.write("\n")
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise StoreIOError(f"failed to persist {path}: {e}") from e
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)


def _first_error(error: ValidationError) -> str:
    details = error.errors()
    if not details:
        return str(error)
    first = details[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message
