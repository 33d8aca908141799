"""JSON export and import helpers."""

from __future__ import annotations

import json
from typing import Any

from rivet_cli.models.exceptions import TaskValidationError
from rivet_cli.models.task import Task


def dump_tasks(tasks: list[Task]) -> str:
    """Serialize tasks as a JSON array in the stored representation."""
    return json.dumps(
        [task.model_dump(mode="json") for task in tasks], indent=2, ensure_ascii=False
    )


def parse_import_text(text: str) -> list[dict[str, Any]]:
    """Parse import input: a JSON array, a single object, or one object per line.

    Raises:
        TaskValidationError: If the input is empty or not JSON
    """
    text = text.strip()
    if not text:
        raise TaskValidationError("import: empty input")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = None
    else:
        if isinstance(parsed, list):
            return parsed
        if isinstance(parsed, dict):
            return [parsed]
        raise TaskValidationError("import: expected a JSON array or object")

    records = []
    for lineno, line in enumerate(text.split("\n"), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise TaskValidationError(f"import line {lineno}: invalid JSON ({e.msg})") from e
    return records
