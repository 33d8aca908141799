"""Filter expression parsing.

Turns the filter tokens typed on the command line (or in a GUI search field)
into a :class:`Filter` made of compiled predicates. Tokens combine with an
implicit AND; every additional token narrows the selection.

Examples:
    +urgent project:home due:tomorrow
    -someday priority:H
    12 +ACTIVE
    status:completed "parity harness"
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime, tzinfo

from rivet_cli.models.exceptions import FilterParseError
from rivet_cli.models.filter import (
    OVERDUE_KEYWORD,
    STATUS_PREDICATES,
    VIRTUAL_TAGS,
    DueAfter,
    DueBefore,
    DueWithin,
    IDENTITY_PREDICATES,
    IdPrefix,
    NumberEquals,
    Predicate,
    PriorityEquals,
    ProjectEquals,
    StatusEquals,
    TagExcluded,
    TagIncluded,
    TextContains,
    VirtualTagExcluded,
    VirtualTagIncluded,
    evaluate,
)
from rivet_cli.models.task import Task, parse_priority
from rivet_cli.utils.dates import resolve_instant, resolve_range

_KEYED_TOKEN = re.compile(r"^(?P<key>[A-Za-z][A-Za-z0-9_.]*):(?P<value>.*)$", re.DOTALL)
_STATUSES = ("pending", "waiting", "completed", "deleted")


class Filter:
    """A compiled filter: the conjunction of its predicates."""

    def __init__(self, predicates: Iterable[Predicate] = (), tz: tzinfo = UTC):
        self.predicates: tuple[Predicate, ...] = tuple(predicates)
        self.tz = tz

    @classmethod
    def parse(cls, tokens: Iterable[str], now: datetime, *, tz: tzinfo = UTC) -> Filter:
        """Compile *tokens* into a filter.

        *now* is only used to validate date expressions; relative dates are
        resolved again against the instant passed to :meth:`matches`.

        Raises:
            FilterParseError: On the first token that cannot be compiled
        """
        return FilterParser(now, tz).parse(tokens)

    def matches(self, task: Task, now: datetime) -> bool:
        """True when every predicate holds for *task* at instant *now*."""
        return all(evaluate(pred, task, now, self.tz) for pred in self.predicates)

    def select(self, tasks: Iterable[Task], now: datetime) -> list[Task]:
        """Tasks of *tasks* matching this filter, in their original order."""
        return [task for task in tasks if self.matches(task, now)]

    def has_status_selector(self) -> bool:
        """Whether any predicate selects by status (``status:`` or a virtual tag)."""
        return any(isinstance(pred, STATUS_PREDICATES) for pred in self.predicates)

    def has_identity_selector(self) -> bool:
        """Whether any predicate picks tasks by number or id."""
        return any(isinstance(pred, IDENTITY_PREDICATES) for pred in self.predicates)

    def __bool__(self) -> bool:
        return bool(self.predicates)

    def __repr__(self) -> str:
        return f"Filter({list(self.predicates)!r})"


class FilterParser:
    """Compile filter tokens one at a time."""

    def __init__(self, now: datetime, tz: tzinfo = UTC):
        self.now = now
        self.tz = tz

    def parse(self, tokens: Iterable[str]) -> Filter:
        predicates = []
        for raw in tokens:
            token = raw.strip()
            if not token:
                continue
            predicates.append(self.parse_token(token))
        return Filter(predicates, tz=self.tz)

    def parse_token(self, token: str) -> Predicate:
        if token[0] in "+-":
            return self._parse_tag(token)

        keyed = _KEYED_TOKEN.match(token)
        if keyed:
            return self._parse_keyed(token, keyed.group("key").lower(), keyed.group("value"))

        if token.isascii() and token.isdigit():
            return NumberEquals(int(token))
        try:
            return IdPrefix(str(uuid.UUID(token)))
        except ValueError:
            return TextContains(token)

    def _parse_tag(self, token: str) -> Predicate:
        tag = token[1:]
        if not tag:
            raise FilterParseError(token, "tag name is missing")
        include = token[0] == "+"
        if tag in VIRTUAL_TAGS:
            return VirtualTagIncluded(tag) if include else VirtualTagExcluded(tag)
        return TagIncluded(tag) if include else TagExcluded(tag)

    def _parse_keyed(self, token: str, key: str, value: str) -> Predicate:
        if key == "project":
            return ProjectEquals(value or None)

        if not value:
            raise FilterParseError(token, f"'{key}:' requires a value")

        if key == "due":
            if value.lower() != OVERDUE_KEYWORD:
                self._check_date(token, value, ranged=True)
            return DueWithin(value)
        if key == "due.before":
            self._check_date(token, value, ranged=False)
            return DueBefore(value)
        if key == "due.after":
            self._check_date(token, value, ranged=False)
            return DueAfter(value)
        if key in ("priority", "pri"):
            try:
                return PriorityEquals(parse_priority(value))
            except ValueError as e:
                raise FilterParseError(token, str(e)) from e
        if key == "status":
            status = value.lower()
            if status not in _STATUSES:
                raise FilterParseError(token, f"unknown status '{value}'")
            return StatusEquals(status)  # type: ignore[arg-type]
        if key in ("id", "uuid"):
            return IdPrefix(value)

        raise FilterParseError(token, f"unknown filter key '{key}'")

    def _check_date(self, token: str, value: str, *, ranged: bool) -> None:
        try:
            if ranged:
                resolve_range(value, self.now, self.tz)
            else:
                resolve_instant(value, self.now, self.tz)
        except ValueError as e:
            raise FilterParseError(token, str(e)) from e
