"""Adapters module - RecordStore implementations for storage backends."""

from .jsonl import JsonlRecordStore

__all__ = ["JsonlRecordStore"]
