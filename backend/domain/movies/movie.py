from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, TypedDict
from uuid import UUID


@dataclass(frozen=True)
class Movie:
    """A movie owned by exactly one user (no sharing across owners)."""

    id: UUID
    owner_id: str
    title: str
    original_title: Optional[str] = None
    tagline: Optional[str] = None
    overview: Optional[str] = None
    release_date: Optional[date] = None
    runtime: Optional[int] = None
    # Stored lowercased; order preserved from input.
    genres: tuple[str, ...] = ()
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    trailer: Optional[str] = None
    vote_average: Optional[float] = None
    vote_count: Optional[int] = None
    budget: Optional[int] = None
    revenue: Optional[int] = None
    reminder_sent: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # Non-null means logically absent from every user-facing read.
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass(frozen=True)
class MovieOwner:
    """Ownership anchor and reminder recipient; identity comes from the auth layer."""

    id: str
    email: str
    name: Optional[str] = None


@dataclass(frozen=True)
class DueReminder:
    """A movie releasing today joined with its owner's address."""

    movie_id: UUID
    owner_id: str
    owner_email: str
    title: str
    release_date: date


class MovieFields(TypedDict, total=False):
    """Partial movie input: only keys that are present are applied."""

    title: str
    original_title: Optional[str]
    tagline: Optional[str]
    overview: Optional[str]
    release_date: Optional[str]
    runtime: Optional[int]
    genres: Optional[list[str]]
    poster_url: Optional[str]
    backdrop_url: Optional[str]
    trailer: Optional[str]
    vote_average: Optional[float]
    vote_count: Optional[int]
    budget: Optional[int]
    revenue: Optional[int]


# Columns a caller may write; reminder_sent is system-managed.
EDITABLE_FIELDS: tuple[str, ...] = tuple(MovieFields.__annotations__)
OPTIONAL_TEXT_FIELDS: tuple[str, ...] = (
    "original_title",
    "tagline",
    "overview",
    "poster_url",
    "backdrop_url",
    "trailer",
)
