from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.movies import Movie


class _MovieFieldsBase(BaseModel):
    model_config = ConfigDict(extra="forbid")

    original_title: Optional[str] = Field(default=None, description="Original-language title")
    tagline: Optional[str] = None
    overview: Optional[str] = None
    # ISO date or datetime; an unparseable value clears the date.
    release_date: Optional[str] = Field(default=None, description="Release date (YYYY-MM-DD)")
    runtime: Optional[int] = Field(default=None, ge=0, description="Runtime in minutes")
    genres: Optional[List[str]] = None
    poster_url: Optional[str] = None
    backdrop_url: Optional[str] = None
    trailer: Optional[str] = None
    vote_average: Optional[float] = Field(default=None, ge=0, le=10)
    vote_count: Optional[int] = Field(default=None, ge=0)
    budget: Optional[int] = Field(default=None, ge=0)
    revenue: Optional[int] = Field(default=None, ge=0)


class MovieCreateRequest(_MovieFieldsBase):
    """Create a movie for `user_id`."""
    user_id: str = Field(..., description="Owner id (from the auth layer)")
    title: str = Field(..., min_length=1)

    def movie_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"user_id"})


class MovieUpdateRequest(_MovieFieldsBase):
    """Partial update: only fields present in the request body are changed."""
    user_id: str = Field(..., description="Owner id (from the auth layer)")
    title: Optional[str] = Field(default=None, min_length=1)

    def movie_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"user_id"})


class OwnerRegisterRequest(BaseModel):
    """Reminder recipient for a user."""
    user_id: str
    email: str = Field(..., min_length=3)
    name: Optional[str] = None


def movie_to_dict(movie: Movie) -> Dict[str, Any]:
    return {
        "id": str(movie.id),
        "title": movie.title,
        "original_title": movie.original_title,
        "tagline": movie.tagline,
        "overview": movie.overview,
        "release_date": movie.release_date.isoformat() if movie.release_date else None,
        "runtime": movie.runtime,
        "genres": list(movie.genres or ()),
        "poster_url": movie.poster_url,
        "backdrop_url": movie.backdrop_url,
        "trailer": movie.trailer,
        "vote_average": movie.vote_average,
        "vote_count": movie.vote_count,
        "budget": movie.budget,
        "revenue": movie.revenue,
        "reminder_sent": movie.reminder_sent,
        "owner_id": movie.owner_id,
        "created_at": movie.created_at,
        "updated_at": movie.updated_at,
        "deleted_at": movie.deleted_at,
    }
