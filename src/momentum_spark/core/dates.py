# src/momentum_spark/core/dates.py

"""
Calendar helpers.

All "today" / "this month" questions are answered in local time. Timestamps are
stored as ISO-8601 strings; naive strings are interpreted as local time, strings
with an offset (or a trailing "Z") are converted to local time before comparing
calendar days.
"""

from __future__ import annotations

import calendar
from collections.abc import Callable
from datetime import date, datetime, time

Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now().astimezone()


def to_local(dt: datetime) -> datetime:
    # astimezone() on a naive datetime assumes local time.
    return dt.astimezone()


def parse_iso(value: object) -> datetime | None:
    """
    Parse an ISO-8601 date or datetime; None for anything unparsable.

    Values that parse but fall outside the representable range once converted
    to local time (e.g. year 9999 with a negative offset) also give None.
    """
    try:
        if isinstance(value, datetime):
            return to_local(value)
        if isinstance(value, date):
            return to_local(datetime.combine(value, time.min))
        if not isinstance(value, str):
            return None
        s = value.strip()
        if not s:
            return None
        return to_local(datetime.fromisoformat(s))
    except (ValueError, OverflowError):
        return None


def is_valid_iso(value: object) -> bool:
    return parse_iso(value) is not None


def iso_timestamp(dt: datetime) -> str:
    """Serialize with microseconds so two mutations in the same second still differ."""
    return to_local(dt).isoformat(timespec="microseconds")


def end_of_day(d: date) -> datetime:
    return to_local(datetime.combine(d, time(23, 59, 59)))


def same_day(a: datetime, b: datetime) -> bool:
    return to_local(a).date() == to_local(b).date()


def is_due_today(due: object, now: datetime) -> bool:
    dt = parse_iso(due)
    if dt is None:
        return False
    return same_day(dt, now)


def is_due_this_month(due: object, now: datetime) -> bool:
    dt = parse_iso(due)
    if dt is None:
        return False
    now = to_local(now)
    return (dt.year, dt.month) == (now.year, now.month)


def is_date_this_month(dt: datetime, now: datetime) -> bool:
    dt = to_local(dt)
    now = to_local(now)
    return (dt.year, dt.month) == (now.year, now.month)


def days_in_month(now: datetime) -> int:
    now = to_local(now)
    return calendar.monthrange(now.year, now.month)[1]


def format_date(value: object) -> str:
    dt = parse_iso(value)
    if dt is None:
        return "Invalid Date"
    return f"{dt.strftime('%b')} {dt.day}, {dt.year}"
