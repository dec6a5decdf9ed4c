# backend/app/services/time_rules.py
"""
Calendar rules in the fixed business timezone (UTC+7).

Weekday numbering follows the branch slot model: 0 = Sunday .. 6 = Saturday.

Wire formats accepted by parse_wire_date():
  "2025-03-10"                         bare calendar date
  "2025-03-10T08:00:00.000+07:00"      timestamp with explicit offset
  "2025-03-10T08:00:00"                naive timestamp, taken as UTC+7
  "2025-03-10T01:00:00Z"               UTC timestamp, shifted +7h

Malformed input yields None. Callers must never replace None with "now".
"""

import re
from datetime import date, datetime, timedelta, timezone

REFERENCE_OFFSET = timedelta(hours=7)
REFERENCE_TZ = timezone(REFERENCE_OFFSET)

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def weekday_of(value: date | datetime | str) -> int:
    """
    Day of week (0 = Sunday) of a calendar date in UTC+7.

    Raises ValueError when a string cannot be parsed.
    """
    if isinstance(value, str):
        parsed = parse_wire_date(value)
        if parsed is None:
            raise ValueError(f"Invalid date: {value!r}")
        value = parsed

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(REFERENCE_TZ)
        value = value.date()

    # date.weekday(): 0 = Monday
    return (value.weekday() + 1) % 7


def to_wire_timestamp(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
    millisecond: int = 0,
) -> str:
    """
    Format calendar components as an ISO timestamp pinned to +07:00.

    The components are the ones the caller displayed, so the receiver
    reads back the same calendar date whatever the caller's own offset.
    """
    # validates ranges (Feb 30, hour 25, ...)
    datetime(year, month, day, hour, minute, second, millisecond * 1000)
    return (
        f"{year:04d}-{month:02d}-{day:02d}"
        f"T{hour:02d}:{minute:02d}:{second:02d}.{millisecond:03d}+07:00"
    )


def wire_timestamp_for(value: datetime) -> str:
    """to_wire_timestamp() over the wall-clock components of a datetime."""
    return to_wire_timestamp(
        value.year,
        value.month,
        value.day,
        value.hour,
        value.minute,
        value.second,
        value.microsecond // 1000,
    )


def parse_wire_date(value) -> datetime | None:
    """Parse a wire date/timestamp into an aware UTC+7 datetime, or None."""
    if value is None:
        return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=REFERENCE_TZ)
        return value.astimezone(REFERENCE_TZ)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=REFERENCE_TZ)

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    match = _DATE_RE.match(text)
    if match:
        try:
            year, month, day = (int(part) for part in match.groups())
            return datetime(year, month, day, tzinfo=REFERENCE_TZ)
        except ValueError:
            return None

    if "T" not in text and " " not in text:
        return None

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=REFERENCE_TZ)
    return parsed.astimezone(REFERENCE_TZ)


def to_wire_date(value) -> str | None:
    """
    Extract a bare "YYYY-MM-DD" without any timezone conversion.

    Strings keep their own date part; date/datetime objects use their
    calendar components as-is.
    """
    if value is None:
        return None

    if isinstance(value, str):
        head = value.strip().split("T")[0].split(" ")[0]
        match = _DATE_RE.match(head)
        if not match:
            return None
        try:
            date(*(int(part) for part in match.groups()))
        except ValueError:
            return None
        return head

    if isinstance(value, (date, datetime)):
        return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"

    return None


def reference_today() -> date:
    """Today's calendar date in UTC+7."""
    return datetime.now(REFERENCE_TZ).date()
