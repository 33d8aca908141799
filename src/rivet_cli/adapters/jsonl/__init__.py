"""JSON Lines record store."""

from .record_store import JsonlRecordStore, UndoSnapshot

__all__ = ["JsonlRecordStore", "UndoSnapshot"]
