"""Repository abstraction layer for Rivet.

Defines the port the task facade talks to. A record store persists whole
partitions of tasks; it knows nothing about dependencies, filters or status
transitions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from rivet_cli.models.task import Partition, Task


class RecordStore(ABC):
    """Abstract base class for partition persistence.

    Implementations must make ``save`` atomic per partition: a reader never
    observes a half-written partition.
    """

    directory: Path

    @abstractmethod
    def load(self, partition: Partition) -> list[Task]:
        """Read a whole partition.

        Args:
            partition: "pending", "completed" or "deleted"

        Returns:
            Tasks in stored order

        Raises:
            CorruptStoreError: If the stored data cannot be parsed
            StoreIOError: If the partition cannot be read
        """
        raise NotImplementedError("RecordStore.load() must be implemented by adapter")

    @abstractmethod
    def save(self, partition: Partition, tasks: list[Task]) -> None:
        """Replace a whole partition, preserving the given order.

        Raises:
            StoreIOError: If the partition cannot be written
        """
        raise NotImplementedError("RecordStore.save() must be implemented by adapter")

    @abstractmethod
    def load_snapshots(self) -> list[dict[str, list[Task]]]:
        """Read the undo journal, oldest snapshot first."""
        raise NotImplementedError(
            "RecordStore.load_snapshots() must be implemented by adapter"
        )

    @abstractmethod
    def save_snapshots(self, snapshots: list[dict[str, list[Task]]]) -> None:
        """Replace the undo journal."""
        raise NotImplementedError(
            "RecordStore.save_snapshots() must be implemented by adapter"
        )

    @abstractmethod
    def load_context(self) -> str | None:
        """Name of the active context, or None when no context is active."""
        raise NotImplementedError("RecordStore.load_context() must be implemented by adapter")

    @abstractmethod
    def save_context(self, name: str | None) -> None:
        """Replace the active context name; None clears it."""
        raise NotImplementedError("RecordStore.save_context() must be implemented by adapter")
