"""Storage interfaces for Rivet.

Implementations live in ``rivet_cli.adapters`` (``jsonl``: one JSON Lines
file per partition).
"""

from .repository import RecordStore

__all__ = ["RecordStore"]
