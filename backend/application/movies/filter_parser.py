"""Decode/encode the compact listing filter.

Two wire forms are accepted:

- query-string form, e.g. ``durationMin=90&genres=acao,aventura&voteMin=70``
- path-segment form, e.g. ``["dur-gte-90", "genre-acao,aventura", "vote-gte-70"]``

Parsing is best-effort: a token or value that cannot be interpreted is
dropped and never raises, so a garbled filter degrades to a wider listing
instead of an error.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, tzinfo
from typing import Iterable, Mapping, Optional, Union
from urllib.parse import parse_qsl, quote, unquote, urlencode

from domain.movies import FilterSet
from domain.movies.calendar import end_of_day, parse_day, start_of_day

Number = Union[int, float]

# Path-segment prefix -> query-string key. Order matters only for readability;
# prefixes are mutually exclusive.
_SEGMENT_PREFIXES: tuple[tuple[str, str], ...] = (
    ("dur-gte-", "durationMin"),
    ("dur-lte-", "durationMax"),
    ("genre-", "genres"),
    ("vote-gte-", "voteMin"),
    ("search-", "search"),
)
_DATE_PREFIX = "date-"

# Plain decimal or exponent notation only; float() would also take "1_000", "nan" and "inf".
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def _local_tz() -> tzinfo:
    tz = datetime.now().astimezone().tzinfo
    assert tz is not None
    return tz


def _parse_number(value: Optional[str]) -> Optional[float]:
    s = (value or "").strip()
    if not _NUMBER_RE.fullmatch(s):
        return None
    try:
        n = float(s)
    except ValueError:
        return None
    if not math.isfinite(n):
        return None
    return n


def _as_duration(n: float) -> Number:
    return int(n) if n.is_integer() else n


def _parse_genres(value: Optional[str]) -> Optional[tuple[str, ...]]:
    if not value:
        return None
    out: list[str] = []
    for token in value.split(","):
        g = token.strip().lower()
        if g and g not in out:
            out.append(g)
    return tuple(out) or None


def _build_filter_set(raw: Mapping[str, str], tz: Optional[tzinfo]) -> Optional[FilterSet]:
    tz = tz or _local_tz()

    search = raw.get("search") or None

    duration_min = _parse_number(raw.get("durationMin"))
    duration_max = _parse_number(raw.get("durationMax"))

    start_day = parse_day(raw.get("releasedStart"), tz)
    end_day = parse_day(raw.get("releasedEnd"), tz)

    vote_min = _parse_number(raw.get("voteMin"))
    if vote_min is not None and vote_min > 10:
        # Clients on a 0-100 scale (e.g. "vote-gte-70").
        vote_min = vote_min / 10

    filters = FilterSet(
        search=search,
        duration_min=_as_duration(duration_min) if duration_min is not None else None,
        duration_max=_as_duration(duration_max) if duration_max is not None else None,
        released_start=start_of_day(start_day, tz) if start_day else None,
        released_end=end_of_day(end_day, tz) if end_day else None,
        genres=_parse_genres(raw.get("genres")),
        vote_min=vote_min,
    )
    return None if filters.is_empty() else filters


def parse_filter_query(raw: Optional[str], *, tz: Optional[tzinfo] = None) -> Optional[FilterSet]:
    """Parse the query-string form. Returns None when nothing usable was found."""
    if not raw:
        return None
    if raw.startswith("?"):
        raw = raw[1:]
    values: dict[str, str] = {}
    for key, value in parse_qsl(raw, keep_blank_values=True):
        # First occurrence wins.
        values.setdefault(key, value)
    return _build_filter_set(values, tz)


def parse_filter_segments(
    segments: Optional[Iterable[str]],
    *,
    tz: Optional[tzinfo] = None,
) -> Optional[FilterSet]:
    """Parse the path-segment form. Unknown prefixes are ignored; later segments win.

    Segments arrive still percent-encoded (as split from the raw URL path) and
    each one is decoded exactly once here.
    """
    if not segments:
        return None
    values: dict[str, str] = {}
    for seg in segments:
        seg = unquote(str(seg or "").strip())
        if not seg:
            continue
        if seg.startswith(_DATE_PREFIX):
            start, _, end = seg[len(_DATE_PREFIX):].partition("_")
            end = end.split("_", 1)[0]
            if start:
                values["releasedStart"] = start
            if end:
                values["releasedEnd"] = end
            continue
        for prefix, key in _SEGMENT_PREFIXES:
            if seg.startswith(prefix):
                values[key] = seg[len(prefix):]
                break
    return _build_filter_set(values, tz)


def split_filter_path(path: Optional[str]) -> list[str]:
    """`"dur-gte-90/genre-acao"` -> `["dur-gte-90", "genre-acao"]`.

    Pass the raw (still encoded) path so an escaped `/` inside a search term
    does not split the segment.
    """
    return [s for s in (path or "").split("/") if s.strip()]


def merge_search(filters: Optional[FilterSet], search: Optional[str]) -> Optional[FilterSet]:
    """Apply a standalone search term unless the encoded filter already has one."""
    if not search:
        return filters
    if filters is not None and filters.search:
        return filters
    return (filters or FilterSet()).with_search(search)


def _format_number(n: Number) -> str:
    if float(n).is_integer():
        return str(int(n))
    return repr(float(n))


def encode_filter_query(filters: Optional[FilterSet]) -> str:
    """Canonical query-string form (inverse of parse_filter_query)."""
    if filters is None:
        return ""
    pairs: list[tuple[str, str]] = []
    if filters.search:
        pairs.append(("search", filters.search))
    if filters.duration_min is not None:
        pairs.append(("durationMin", _format_number(filters.duration_min)))
    if filters.duration_max is not None:
        pairs.append(("durationMax", _format_number(filters.duration_max)))
    if filters.released_start is not None:
        pairs.append(("releasedStart", filters.released_start.date().isoformat()))
    if filters.released_end is not None:
        pairs.append(("releasedEnd", filters.released_end.date().isoformat()))
    if filters.genres:
        pairs.append(("genres", ",".join(filters.genres)))
    if filters.vote_min is not None:
        pairs.append(("voteMin", _format_number(filters.vote_min)))
    return urlencode(pairs, safe=",")


def encode_filter_segments(filters: Optional[FilterSet]) -> list[str]:
    """Canonical path-segment form (inverse of parse_filter_segments)."""
    if filters is None:
        return []
    segments: list[str] = []
    if filters.duration_min is not None:
        segments.append(f"dur-gte-{_format_number(filters.duration_min)}")
    if filters.duration_max is not None:
        segments.append(f"dur-lte-{_format_number(filters.duration_max)}")
    if filters.released_start is not None or filters.released_end is not None:
        start = filters.released_start.date().isoformat() if filters.released_start else ""
        end = filters.released_end.date().isoformat() if filters.released_end else ""
        segments.append(f"date-{start}_{end}")
    if filters.genres:
        segments.append(f"genre-{quote(','.join(filters.genres), safe=',')}")
    if filters.vote_min is not None:
        segments.append(f"vote-gte-{_format_number(filters.vote_min)}")
    if filters.search:
        segments.append(f"search-{quote(filters.search, safe='')}")
    return segments
