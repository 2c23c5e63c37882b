from __future__ import annotations

from uuid import UUID


class MovieCatalogError(Exception):
    """Base class for conditions surfaced to catalog callers."""


class MovieNotFoundError(MovieCatalogError):
    def __init__(self, movie_id: UUID | str) -> None:
        super().__init__("Movie not found.")
        self.movie_id = movie_id


class MovieTitleConflictError(MovieCatalogError):
    def __init__(self, title: str) -> None:
        super().__init__("A movie with this title already exists.")
        self.title = title
