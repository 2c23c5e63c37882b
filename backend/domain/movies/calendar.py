from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional


def start_of_day(day: date, tz: Optional[tzinfo] = None) -> datetime:
    """Local midnight at the beginning of `day`."""
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: Optional[tzinfo] = None) -> datetime:
    """Last representable instant of `day` (next midnight minus 1µs)."""
    return start_of_day(day + timedelta(days=1), tz) - timedelta(microseconds=1)


def day_bounds(moment: datetime) -> tuple[datetime, datetime]:
    """Return the [start, end] instants of the local calendar day containing `moment`."""
    day = moment.date()
    return start_of_day(day, moment.tzinfo), end_of_day(day, moment.tzinfo)


def next_top_of_hour(moment: datetime) -> datetime:
    return moment.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)


def is_after_now(day: date, now: datetime) -> bool:
    """True when `day` starts strictly after `now` (i.e. a future release)."""
    return start_of_day(day, now.tzinfo) > now


def parse_day(value: object, tz: Optional[tzinfo] = None) -> Optional[date]:
    """Best-effort calendar date from an ISO date/datetime string or object.

    Aware datetimes are shifted into `tz` before taking the date. Returns None
    for anything unparseable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None and tz is not None:
            value = value.astimezone(tz)
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        pass
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is not None and tz is not None:
        dt = dt.astimezone(tz)
    return dt.date()
