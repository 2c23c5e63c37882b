from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional, Protocol
from uuid import UUID

from domain.movies import DueReminder, FilterSet, Movie, MovieOwner


class MovieStorePort(Protocol):
    async def register_owner(self, *, user_id: str, email: str, name: Optional[str] = None) -> MovieOwner:
        """Create or refresh the reminder recipient for a user (email lower-cased)."""
        ...

    async def find_by_id(self, *, movie_id: UUID, owner_id: str) -> Optional[Movie]:
        ...

    async def find_by_title(
        self,
        *,
        title: str,
        owner_id: str,
        exclude_id: Optional[UUID] = None,
    ) -> Optional[Movie]:
        """Case-insensitive lookup among the owner's non-deleted movies."""
        ...

    async def list_movies(
        self,
        *,
        owner_id: str,
        filters: Optional[FilterSet] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> List[Movie]:
        """Newest-created first."""
        ...

    async def count_movies(self, *, owner_id: str, filters: Optional[FilterSet] = None) -> int:
        ...

    async def create_movie(self, *, owner_id: str, fields: Mapping[str, Any]) -> Movie:
        ...

    async def update_movie(self, *, movie_id: UUID, owner_id: str, fields: Mapping[str, Any]) -> Optional[Movie]:
        ...

    async def soft_delete(self, *, movie_id: UUID, owner_id: str) -> bool:
        ...

    async def list_genres(self, *, owner_id: str) -> List[str]:
        """Raw genre tokens across the owner's non-deleted movies (may repeat)."""
        ...

    async def find_due_for_reminder(self, *, day_start: datetime, day_end: datetime) -> List[DueReminder]:
        """Unsent movies releasing within [day_start, day_end] whose owner has an email."""
        ...

    async def mark_reminder_sent(self, *, movie_id: UUID) -> bool:
        ...

    async def close(self) -> None:
        ...
