from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional
from uuid import UUID

from application.movies.errors import MovieNotFoundError, MovieTitleConflictError
from application.movies.filter_parser import merge_search, parse_filter_query, parse_filter_segments
from application.movies.payload import build_movie_changes
from application.ports.clock_port import ClockPort
from application.ports.movie_store_port import MovieStorePort
from domain.movies import FilterSet, Movie
from domain.movies.genres import format_genre_listing

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 50


@dataclass(frozen=True)
class MoviePage:
    items: list[Movie] = field(default_factory=list)
    page: int = 1
    per_page: int = DEFAULT_PER_PAGE
    total: int = 0


class MovieCatalogService:
    """Owner-scoped catalog operations: filtered listing and guarded mutations."""

    def __init__(
        self,
        *,
        store: MovieStorePort,
        clock: ClockPort,
        default_per_page: int = DEFAULT_PER_PAGE,
        max_per_page: int = MAX_PER_PAGE,
    ) -> None:
        self._store = store
        self._clock = clock
        self._default_per_page = int(default_per_page)
        self._max_per_page = int(max_per_page)

    def parse_filters(
        self,
        *,
        filters: Optional[str] = None,
        segments: Optional[Iterable[str]] = None,
        search: Optional[str] = None,
    ) -> Optional[FilterSet]:
        tz = self._clock.tz
        parsed = parse_filter_segments(segments, tz=tz) if segments is not None else parse_filter_query(filters, tz=tz)
        return merge_search(parsed, search)

    async def list_movies(
        self,
        *,
        owner_id: str,
        page: Optional[int] = None,
        per_page: Optional[int] = None,
        filters: Optional[FilterSet] = None,
    ) -> MoviePage:
        page = 1 if page is None else int(page)
        per_page = self._default_per_page if per_page is None else int(per_page)
        if page < 1:
            raise ValueError("page must be >= 1")
        if not 1 <= per_page <= self._max_per_page:
            raise ValueError(f"per_page must be between 1 and {self._max_per_page}")

        items, total = await asyncio.gather(
            self._store.list_movies(
                owner_id=str(owner_id),
                filters=filters,
                limit=per_page,
                offset=(page - 1) * per_page,
            ),
            self._store.count_movies(owner_id=str(owner_id), filters=filters),
        )
        return MoviePage(items=list(items or []), page=page, per_page=per_page, total=int(total or 0))

    async def get_movie(self, *, movie_id: UUID, owner_id: str) -> Movie:
        movie = await self._store.find_by_id(movie_id=movie_id, owner_id=str(owner_id))
        if movie is None:
            raise MovieNotFoundError(movie_id)
        return movie

    async def create_movie(self, *, owner_id: str, payload: Mapping[str, Any]) -> Movie:
        if "title" not in payload:
            raise ValueError("title is required")
        changes = build_movie_changes(payload, now=self._clock.now())
        existing = await self._store.find_by_title(title=changes["title"], owner_id=str(owner_id))
        if existing is not None:
            raise MovieTitleConflictError(changes["title"])
        movie = await self._store.create_movie(owner_id=str(owner_id), fields=changes)
        logger.info("movie created (movie_id=%s, owner_id=%s)", movie.id, owner_id)
        return movie

    async def update_movie(self, *, movie_id: UUID, owner_id: str, payload: Mapping[str, Any]) -> Movie:
        existing = await self.get_movie(movie_id=movie_id, owner_id=owner_id)
        changes = build_movie_changes(
            payload,
            now=self._clock.now(),
            previous_release_date=existing.release_date,
        )
        new_title = changes.get("title")
        if new_title is not None and new_title != existing.title:
            clash = await self._store.find_by_title(
                title=new_title,
                owner_id=str(owner_id),
                exclude_id=existing.id,
            )
            if clash is not None:
                raise MovieTitleConflictError(new_title)
        if not changes:
            return existing
        updated = await self._store.update_movie(movie_id=existing.id, owner_id=str(owner_id), fields=changes)
        if updated is None:
            # Deleted between the read and the write.
            raise MovieNotFoundError(movie_id)
        return updated

    async def delete_movie(self, *, movie_id: UUID, owner_id: str) -> None:
        existing = await self.get_movie(movie_id=movie_id, owner_id=owner_id)
        ok = await self._store.soft_delete(movie_id=existing.id, owner_id=str(owner_id))
        if not ok:
            raise MovieNotFoundError(movie_id)
        logger.info("movie soft-deleted (movie_id=%s, owner_id=%s)", movie_id, owner_id)

    async def list_genres(self, *, owner_id: str) -> list[str]:
        raw = await self._store.list_genres(owner_id=str(owner_id))
        return format_genre_listing(raw)
