from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional

from domain.movies import EDITABLE_FIELDS, OPTIONAL_TEXT_FIELDS
from domain.movies.calendar import is_after_now, parse_day
from domain.movies.genres import normalize_genres

_NON_NEGATIVE_INT_FIELDS = ("runtime", "vote_count", "budget", "revenue")


def _check_non_negative(name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer")
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


def _check_vote_average(value: Any) -> Optional[float]:
    if value is None:
        return None
    v = float(value)
    if not 0 <= v <= 10:
        raise ValueError("vote_average must be between 0 and 10")
    return v


def build_movie_changes(
    payload: Mapping[str, Any],
    *,
    now: datetime,
    previous_release_date: Optional[date] = None,
) -> dict[str, Any]:
    """Translate a partial movie payload into column changes.

    Only keys present in `payload` produce a change; nothing is re-derived from
    defaults. Empty optional text becomes None. When `release_date` is supplied
    the reminder flag follows it: a future date re-arms the reminder, clearing
    a previously set date disarms it.
    """
    changes: dict[str, Any] = {}
    for key in EDITABLE_FIELDS:
        if key not in payload:
            continue
        value = payload[key]

        if key == "title":
            title = str(value or "").strip()
            if not title:
                raise ValueError("title is required")
            changes["title"] = title
        elif key in OPTIONAL_TEXT_FIELDS:
            changes[key] = (str(value).strip() or None) if value is not None else None
        elif key == "genres":
            changes["genres"] = normalize_genres(value or [])
        elif key in _NON_NEGATIVE_INT_FIELDS:
            changes[key] = _check_non_negative(key, value)
        elif key == "vote_average":
            changes[key] = _check_vote_average(value)
        elif key == "release_date":
            parsed = parse_day(value, now.tzinfo)
            changes["release_date"] = parsed
            if parsed is not None and is_after_now(parsed, now):
                changes["reminder_sent"] = False
            elif parsed is None and previous_release_date is not None:
                changes["reminder_sent"] = True

    return changes
