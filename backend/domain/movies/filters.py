from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import datetime
from typing import Optional, Union

Number = Union[int, float]


@dataclass(frozen=True)
class FilterSet:
    """Structured listing filter built fresh per request.

    All present predicates are ANDed. `genres` is an inclusive-OR set of
    lowercase tokens. Release bounds are local start-of-day / end-of-day
    instants so a same-day range covers the whole day.
    """

    search: Optional[str] = None
    duration_min: Optional[Number] = None
    duration_max: Optional[Number] = None
    released_start: Optional[datetime] = None
    released_end: Optional[datetime] = None
    genres: Optional[tuple[str, ...]] = None
    vote_min: Optional[float] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def with_search(self, search: str) -> "FilterSet":
        return replace(self, search=search)
