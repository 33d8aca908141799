"""Date expression parsing shared by the task model and the filter engine.

Supported expressions:

- keywords: ``now``, ``today``, ``tomorrow``, ``yesterday``
- relative offsets: ``+3d``, ``-2h``, ``+30m``
- ``YYYYMMDDTHHMMSSZ`` (the on-disk encoding)
- ISO 8601 with an explicit offset (``2026-02-16T10:00:00+00:00``)
- ``YYYY-MM-DD``, ``YYYY-MM-DDTHH:MM`` and ``YYYY-MM-DD HH:MM`` in the local zone

"Local" means the ``tz`` argument, which defaults to UTC so results do not
depend on the machine running them.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, time, timedelta, tzinfo

STORAGE_FORMAT = "%Y%m%dT%H%M%SZ"

SUPPORTED_FORMATS_HINT = (
    "supported formats: now/today/tomorrow/yesterday, +Nd/+Nh/+Nm, RFC3339, "
    "YYYY-MM-DD, YYYY-MM-DDTHH:MM, YYYY-MM-DD HH:MM, YYYYMMDDTHHMMSSZ"
)

_RELATIVE_RE = re.compile(r"^(?P<sign>[+-])(?P<num>\d+)(?P<unit>[dhm])$")
_LOCAL_DATETIME_FORMATS = ("%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M")
_DAY_KEYWORDS = {"today": 0, "tomorrow": 1, "yesterday": -1}


def normalize_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime with whole-second precision.

    Naive datetimes are taken to be UTC already.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).replace(microsecond=0)


def format_storage(value: datetime) -> str:
    """Encode a datetime in the partition file format."""
    return normalize_utc(value).strftime(STORAGE_FORMAT)


def parse_storage(raw: str) -> datetime:
    """Decode a partition file timestamp."""
    return datetime.strptime(raw, STORAGE_FORMAT).replace(tzinfo=UTC)


def start_of_day(now: datetime, tz: tzinfo = UTC, offset_days: int = 0) -> datetime:
    """Midnight (in *tz*) of the day containing *now*, shifted by *offset_days*."""
    local_day = now.astimezone(tz).date() + timedelta(days=offset_days)
    return _local_midnight(local_day, tz)


def _local_midnight(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(UTC)


def _parse(token: str, now: datetime, tz: tzinfo) -> tuple[datetime, bool] | None:
    """Parse *token* into ``(instant, day_granular)`` or ``None``."""
    lower = token.lower()

    if lower == "now":
        return now, False
    if lower in _DAY_KEYWORDS:
        return start_of_day(now, tz, _DAY_KEYWORDS[lower]), True

    match = _RELATIVE_RE.match(token)
    if match:
        num = int(match.group("num"))
        unit = match.group("unit")
        if unit == "d":
            delta = timedelta(days=num)
        elif unit == "h":
            delta = timedelta(hours=num)
        else:
            delta = timedelta(minutes=num)
        instant = now - delta if match.group("sign") == "-" else now + delta
        return instant, unit == "d"

    try:
        return parse_storage(token), False
    except ValueError:
        pass

    try:
        parsed = datetime.fromisoformat(token.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
    if parsed is not None and parsed.tzinfo is not None:
        return parsed.astimezone(UTC), False

    try:
        day = datetime.strptime(token, "%Y-%m-%d").date()
    except ValueError:
        pass
    else:
        return _local_midnight(day, tz), True

    for fmt in _LOCAL_DATETIME_FORMATS:
        try:
            naive = datetime.strptime(token, fmt)
        except ValueError:
            continue
        return naive.replace(tzinfo=tz).astimezone(UTC), False

    return None


def resolve_instant(expr: str, now: datetime, tz: tzinfo = UTC) -> datetime:
    """Resolve a date expression to a single UTC instant.

    Raises:
        ValueError: If the expression is not recognised
    """
    token = expr.strip()
    parsed = _parse(token, normalize_utc(now), tz) if token else None
    if parsed is None:
        raise ValueError(f"unrecognized date expression: {expr!r}; {SUPPORTED_FORMATS_HINT}")
    return normalize_utc(parsed[0])


def resolve_range(expr: str, now: datetime, tz: tzinfo = UTC) -> tuple[datetime, datetime]:
    """Resolve a date expression to a half-open ``[start, end)`` UTC range.

    Day-granular expressions (``today``, ``+2d``, ``2026-02-16``) cover the
    whole calendar day in *tz*. Expressions carrying a time of day cover one
    second.

    Raises:
        ValueError: If the expression is not recognised
    """
    token = expr.strip()
    now = normalize_utc(now)
    parsed = _parse(token, now, tz) if token else None
    if parsed is None:
        raise ValueError(f"unrecognized date expression: {expr!r}; {SUPPORTED_FORMATS_HINT}")

    instant, day_granular = parsed
    if day_granular:
        start = start_of_day(instant, tz)
        return start, start_of_day(instant, tz, 1)
    instant = normalize_utc(instant)
    return instant, instant + timedelta(seconds=1)
