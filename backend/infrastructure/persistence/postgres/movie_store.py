from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID, uuid4

from application.movies.errors import MovieTitleConflictError
from application.ports.movie_store_port import MovieStorePort
from domain.movies import EDITABLE_FIELDS, DueReminder, FilterSet, Movie, MovieOwner

logger = logging.getLogger(__name__)

_WRITABLE_COLUMNS = frozenset(EDITABLE_FIELDS) | {"reminder_sent"}

_MOVIE_COLUMNS = (
    "id, owner_id, title, original_title, tagline, overview, release_date, runtime, genres, "
    "poster_url, backdrop_url, trailer, vote_average, vote_count, budget, revenue, "
    "reminder_sent, created_at, updated_at, deleted_at"
)

# Every user-facing read goes through this predicate.
_ALIVE = "deleted_at IS NULL"


def _is_alive(movie: Movie) -> bool:
    return movie.deleted_at is None


def _normalize_email(email: str) -> str:
    e = (email or "").strip().lower()
    if not e:
        raise ValueError("email is required")
    return e


def _matches(movie: Movie, filters: Optional[FilterSet]) -> bool:
    if filters is None:
        return True
    if filters.search:
        q = filters.search.lower()
        if q not in (movie.title or "").lower() and q not in (movie.original_title or "").lower():
            return False
    if filters.duration_min is not None or filters.duration_max is not None:
        if movie.runtime is None:
            return False
        if filters.duration_min is not None and movie.runtime < filters.duration_min:
            return False
        if filters.duration_max is not None and movie.runtime > filters.duration_max:
            return False
    if filters.released_start is not None or filters.released_end is not None:
        if movie.release_date is None:
            return False
        if filters.released_start is not None and movie.release_date < filters.released_start.date():
            return False
        if filters.released_end is not None and movie.release_date > filters.released_end.date():
            return False
    if filters.genres:
        if not set(filters.genres) & set(movie.genres or ()):
            return False
    if filters.vote_min is not None:
        if movie.vote_average is None or movie.vote_average < filters.vote_min:
            return False
    return True


def _apply_fields(movie: Movie, fields: Mapping[str, Any]) -> Movie:
    values = {k: v for k, v in fields.items() if k in _WRITABLE_COLUMNS}
    if "genres" in values:
        values["genres"] = tuple(values["genres"] or ())
    return replace(movie, **values)


class InMemoryMovieStore(MovieStorePort):
    def __init__(self) -> None:
        self._movies: list[Movie] = []
        self._owners: dict[str, MovieOwner] = {}
        self._last_created_at: Optional[datetime] = None

    def _next_created_at(self) -> datetime:
        # Strictly increasing so newest-first ordering is total.
        now = datetime.now(timezone.utc)
        if self._last_created_at is not None and now <= self._last_created_at:
            now = self._last_created_at + timedelta(microseconds=1)
        self._last_created_at = now
        return now

    async def register_owner(self, *, user_id: str, email: str, name: Optional[str] = None) -> MovieOwner:
        normalized = _normalize_email(email)
        for other in self._owners.values():
            if other.id != str(user_id) and other.email == normalized:
                raise ValueError("email is already registered")
        prev = self._owners.get(str(user_id))
        owner = MovieOwner(
            id=str(user_id),
            email=normalized,
            name=name if name is not None else (prev.name if prev else None),
        )
        self._owners[owner.id] = owner
        return owner

    async def find_by_id(self, *, movie_id: UUID, owner_id: str) -> Optional[Movie]:
        for m in self._movies:
            if m.id == movie_id and m.owner_id == str(owner_id) and _is_alive(m):
                return m
        return None

    async def find_by_title(
        self,
        *,
        title: str,
        owner_id: str,
        exclude_id: Optional[UUID] = None,
    ) -> Optional[Movie]:
        needle = (title or "").strip().lower()
        for m in self._movies:
            if m.owner_id != str(owner_id) or not _is_alive(m):
                continue
            if exclude_id is not None and m.id == exclude_id:
                continue
            if m.title.lower() == needle:
                return m
        return None

    def _select(self, owner_id: str, filters: Optional[FilterSet]) -> list[Movie]:
        items = [m for m in self._movies if m.owner_id == str(owner_id) and _is_alive(m) and _matches(m, filters)]
        items.sort(
            key=lambda x: (x.created_at or datetime.min.replace(tzinfo=timezone.utc), str(x.id)),
            reverse=True,
        )
        return items

    async def list_movies(
        self,
        *,
        owner_id: str,
        filters: Optional[FilterSet] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> List[Movie]:
        items = self._select(owner_id, filters)
        return items[int(offset) : int(offset) + int(limit)]

    async def count_movies(self, *, owner_id: str, filters: Optional[FilterSet] = None) -> int:
        return len(self._select(owner_id, filters))

    async def create_movie(self, *, owner_id: str, fields: Mapping[str, Any]) -> Movie:
        title = str(fields.get("title") or "").strip()
        if not title:
            raise ValueError("title is required")
        if await self.find_by_title(title=title, owner_id=owner_id) is not None:
            raise MovieTitleConflictError(title)
        created_at = self._next_created_at()
        movie = _apply_fields(
            Movie(
                id=uuid4(),
                owner_id=str(owner_id),
                title=title,
                created_at=created_at,
                updated_at=created_at,
            ),
            fields,
        )
        self._movies.append(movie)
        return movie

    async def update_movie(self, *, movie_id: UUID, owner_id: str, fields: Mapping[str, Any]) -> Optional[Movie]:
        for idx, m in enumerate(self._movies):
            if m.id != movie_id or m.owner_id != str(owner_id) or not _is_alive(m):
                continue
            next_title = fields.get("title")
            if next_title is not None:
                if await self.find_by_title(title=next_title, owner_id=owner_id, exclude_id=m.id) is not None:
                    raise MovieTitleConflictError(next_title)
            updated = replace(_apply_fields(m, fields), updated_at=datetime.now(timezone.utc))
            self._movies[idx] = updated
            return updated
        return None

    async def soft_delete(self, *, movie_id: UUID, owner_id: str) -> bool:
        for idx, m in enumerate(self._movies):
            if m.id == movie_id and m.owner_id == str(owner_id) and _is_alive(m):
                now = datetime.now(timezone.utc)
                self._movies[idx] = replace(m, deleted_at=now, updated_at=now)
                return True
        return False

    async def list_genres(self, *, owner_id: str) -> List[str]:
        out: list[str] = []
        for m in self._movies:
            if m.owner_id == str(owner_id) and _is_alive(m):
                out.extend(m.genres or ())
        return out

    async def find_due_for_reminder(self, *, day_start: datetime, day_end: datetime) -> List[DueReminder]:
        first, last = day_start.date(), day_end.date()
        due: list[DueReminder] = []
        for m in self._movies:
            if m.reminder_sent or not _is_alive(m) or m.release_date is None:
                continue
            if not first <= m.release_date <= last:
                continue
            owner = self._owners.get(m.owner_id)
            if owner is None or not owner.email:
                continue
            due.append(
                DueReminder(
                    movie_id=m.id,
                    owner_id=m.owner_id,
                    owner_email=owner.email,
                    title=m.title,
                    release_date=m.release_date,
                )
            )
        return due

    async def mark_reminder_sent(self, *, movie_id: UUID) -> bool:
        for idx, m in enumerate(self._movies):
            if m.id == movie_id:
                self._movies[idx] = replace(m, reminder_sent=True, updated_at=datetime.now(timezone.utc))
                return True
        return False

    async def close(self) -> None:
        return None


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _build_where(owner_id: str, filters: Optional[FilterSet]) -> tuple[str, list[Any]]:
    """Compose the owner-scoped, alive-only WHERE clause for listing/counting."""
    params: list[Any] = [str(owner_id)]
    clauses = ["owner_id = $1", _ALIVE]
    if filters is not None:
        if filters.search:
            params.append(f"%{_escape_like(filters.search)}%")
            n = len(params)
            clauses.append(f"(title ILIKE ${n} OR original_title ILIKE ${n})")
        if filters.duration_min is not None:
            params.append(float(filters.duration_min))
            clauses.append(f"runtime >= ${len(params)}::double precision")
        if filters.duration_max is not None:
            params.append(float(filters.duration_max))
            clauses.append(f"runtime <= ${len(params)}::double precision")
        if filters.released_start is not None:
            params.append(filters.released_start.date())
            clauses.append(f"release_date >= ${len(params)}::date")
        if filters.released_end is not None:
            params.append(filters.released_end.date())
            clauses.append(f"release_date <= ${len(params)}::date")
        if filters.genres:
            params.append(list(filters.genres))
            clauses.append(f"genres && ${len(params)}::text[]")
        if filters.vote_min is not None:
            params.append(float(filters.vote_min))
            clauses.append(f"vote_average >= ${len(params)}::double precision")
    return " AND ".join(clauses), params


class PostgresMovieStore(MovieStorePort):
    """Postgres-backed movie catalog (asyncpg)."""

    def __init__(
        self,
        *,
        dsn: str,
        min_size: int = 1,
        max_size: int = 5,
    ) -> None:
        self._dsn = dsn
        self._min_size = min_size
        self._max_size = max_size
        self._pool = None
        self._pool_lock = asyncio.Lock()

    async def _get_pool(self):
        if self._pool is not None:
            return self._pool
        async with self._pool_lock:
            if self._pool is not None:
                return self._pool
            import asyncpg  # type: ignore

            self._pool = await asyncpg.create_pool(
                self._dsn,
                min_size=self._min_size,
                max_size=self._max_size,
                ssl=False,
            )
            await self._ensure_schema()
            logger.info("PostgreSQL movie store pool initialized")
            return self._pool

    async def _ensure_schema(self) -> None:
        pool = self._pool
        if pool is None:
            return
        async with pool.acquire() as conn:
            try:
                await conn.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto";')
            except Exception as e:
                logger.warning("Failed to ensure pgcrypto extension: %s", e)
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS movie_owners (
                    id text PRIMARY KEY,
                    email text NOT NULL,
                    name text,
                    created_at timestamptz NOT NULL DEFAULT NOW(),
                    updated_at timestamptz NOT NULL DEFAULT NOW()
                );
                """
            )
            await conn.execute(
                "CREATE UNIQUE INDEX IF NOT EXISTS movie_owners_email_uq ON movie_owners(lower(email));"
            )
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS movies (
                    id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
                    owner_id text NOT NULL,
                    title text NOT NULL,
                    original_title text,
                    tagline text,
                    overview text,
                    release_date date,
                    runtime int CHECK (runtime >= 0),
                    genres text[] NOT NULL DEFAULT '{}',
                    poster_url text,
                    backdrop_url text,
                    trailer text,
                    vote_average double precision CHECK (vote_average BETWEEN 0 AND 10),
                    vote_count int CHECK (vote_count >= 0),
                    budget bigint CHECK (budget >= 0),
                    revenue bigint CHECK (revenue >= 0),
                    reminder_sent boolean NOT NULL DEFAULT FALSE,
                    created_at timestamptz NOT NULL DEFAULT clock_timestamp(),
                    updated_at timestamptz NOT NULL DEFAULT NOW(),
                    deleted_at timestamptz
                );
                """
            )
            # Title is unique per owner among alive rows only.
            await conn.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS movies_owner_title_alive_uq
                ON movies(owner_id, lower(title))
                WHERE deleted_at IS NULL;
                """
            )
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS movies_owner_created_idx ON movies(owner_id, created_at DESC);"
            )
            await conn.execute(
                "CREATE INDEX IF NOT EXISTS movies_genres_gin_idx ON movies USING GIN (genres);"
            )
            await conn.execute(
                """
                CREATE INDEX IF NOT EXISTS movies_due_reminder_idx
                ON movies(release_date)
                WHERE reminder_sent = FALSE AND deleted_at IS NULL;
                """
            )

    @staticmethod
    def _row_to_movie(row: dict) -> Movie:
        vote_average = row.get("vote_average")
        return Movie(
            id=row["id"],
            owner_id=str(row.get("owner_id") or ""),
            title=str(row.get("title") or ""),
            original_title=row.get("original_title"),
            tagline=row.get("tagline"),
            overview=row.get("overview"),
            release_date=row.get("release_date"),
            runtime=row.get("runtime"),
            genres=tuple(row.get("genres") or ()),
            poster_url=row.get("poster_url"),
            backdrop_url=row.get("backdrop_url"),
            trailer=row.get("trailer"),
            vote_average=float(vote_average) if vote_average is not None else None,
            vote_count=row.get("vote_count"),
            budget=row.get("budget"),
            revenue=row.get("revenue"),
            reminder_sent=bool(row.get("reminder_sent")),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
            deleted_at=row.get("deleted_at"),
        )

    async def register_owner(self, *, user_id: str, email: str, name: Optional[str] = None) -> MovieOwner:
        import asyncpg  # type: ignore

        pool = await self._get_pool()
        normalized = _normalize_email(email)
        async with pool.acquire() as conn:
            try:
                row = await conn.fetchrow(
                    """
                    INSERT INTO movie_owners (id, email, name)
                    VALUES ($1, $2, $3)
                    ON CONFLICT (id) DO UPDATE
                    SET email = EXCLUDED.email,
                        name = COALESCE(EXCLUDED.name, movie_owners.name),
                        updated_at = NOW()
                    RETURNING id, email, name;
                    """,
                    str(user_id),
                    normalized,
                    name,
                )
            except asyncpg.UniqueViolationError as e:
                raise ValueError("email is already registered") from e
        assert row is not None
        return MovieOwner(id=str(row["id"]), email=str(row["email"]), name=row["name"])

    async def find_by_id(self, *, movie_id: UUID, owner_id: str) -> Optional[Movie]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {_MOVIE_COLUMNS} FROM movies WHERE id = $1 AND owner_id = $2 AND {_ALIVE};",
                movie_id,
                str(owner_id),
            )
        return self._row_to_movie(dict(row)) if row else None

    async def find_by_title(
        self,
        *,
        title: str,
        owner_id: str,
        exclude_id: Optional[UUID] = None,
    ) -> Optional[Movie]:
        pool = await self._get_pool()
        params: list[Any] = [str(owner_id), (title or "").strip()]
        sql = f"SELECT {_MOVIE_COLUMNS} FROM movies WHERE owner_id = $1 AND lower(title) = lower($2) AND {_ALIVE}"
        if exclude_id is not None:
            params.append(exclude_id)
            sql += f" AND id <> ${len(params)}"
        sql += " LIMIT 1;"
        async with pool.acquire() as conn:
            row = await conn.fetchrow(sql, *params)
        return self._row_to_movie(dict(row)) if row else None

    async def list_movies(
        self,
        *,
        owner_id: str,
        filters: Optional[FilterSet] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> List[Movie]:
        pool = await self._get_pool()
        limit = max(1, int(limit))
        offset = max(0, int(offset))
        where, params = _build_where(owner_id, filters)
        sql = f"SELECT {_MOVIE_COLUMNS} FROM movies WHERE {where} ORDER BY created_at DESC, id DESC"
        params.append(limit)
        sql += f" LIMIT ${len(params)}"
        params.append(offset)
        sql += f" OFFSET ${len(params)}"
        async with pool.acquire() as conn:
            rows = await conn.fetch(sql, *params)
        return [self._row_to_movie(dict(r)) for r in rows]

    async def count_movies(self, *, owner_id: str, filters: Optional[FilterSet] = None) -> int:
        pool = await self._get_pool()
        where, params = _build_where(owner_id, filters)
        async with pool.acquire() as conn:
            row = await conn.fetchrow(f"SELECT COUNT(1) AS n FROM movies WHERE {where}", *params)
        return int(row["n"] if row and "n" in row else 0)

    async def create_movie(self, *, owner_id: str, fields: Mapping[str, Any]) -> Movie:
        import asyncpg  # type: ignore

        pool = await self._get_pool()
        values: Dict[str, Any] = {k: v for k, v in fields.items() if k in _WRITABLE_COLUMNS}
        if not str(values.get("title") or "").strip():
            raise ValueError("title is required")
        columns = ["owner_id", *values.keys()]
        params = [str(owner_id), *values.values()]
        placeholders = ", ".join(f"${i}" for i in range(1, len(params) + 1))
        async with pool.acquire() as conn:
            try:
                row = await conn.fetchrow(
                    f"INSERT INTO movies ({', '.join(columns)}) VALUES ({placeholders}) RETURNING {_MOVIE_COLUMNS};",
                    *params,
                )
            except asyncpg.UniqueViolationError as e:
                raise MovieTitleConflictError(str(values["title"])) from e
        assert row is not None
        return self._row_to_movie(dict(row))

    async def update_movie(self, *, movie_id: UUID, owner_id: str, fields: Mapping[str, Any]) -> Optional[Movie]:
        import asyncpg  # type: ignore

        pool = await self._get_pool()
        values: Dict[str, Any] = {k: v for k, v in fields.items() if k in _WRITABLE_COLUMNS}
        params: list[Any] = [movie_id, str(owner_id)]
        assignments: list[str] = []
        for column, value in values.items():
            params.append(value)
            assignments.append(f"{column} = ${len(params)}")
        assignments.append("updated_at = NOW()")
        async with pool.acquire() as conn:
            try:
                row = await conn.fetchrow(
                    f"""
                    UPDATE movies
                    SET {', '.join(assignments)}
                    WHERE id = $1
                      AND owner_id = $2
                      AND {_ALIVE}
                    RETURNING {_MOVIE_COLUMNS};
                    """,
                    *params,
                )
            except asyncpg.UniqueViolationError as e:
                raise MovieTitleConflictError(str(values.get("title") or "")) from e
        return self._row_to_movie(dict(row)) if row else None

    async def soft_delete(self, *, movie_id: UUID, owner_id: str) -> bool:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                UPDATE movies
                SET deleted_at = NOW(),
                    updated_at = NOW()
                WHERE id = $1
                  AND owner_id = $2
                  AND deleted_at IS NULL
                RETURNING id;
                """,
                movie_id,
                str(owner_id),
            )
        return bool(row)

    async def list_genres(self, *, owner_id: str) -> List[str]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT DISTINCT lower(btrim(g)) AS genre
                FROM movies, unnest(genres) AS g
                WHERE owner_id = $1
                  AND {_ALIVE};
                """,
                str(owner_id),
            )
        return [str(r["genre"]) for r in rows if r["genre"]]

    async def find_due_for_reminder(self, *, day_start: datetime, day_end: datetime) -> List[DueReminder]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT m.id, m.owner_id, m.title, m.release_date, o.email
                FROM movies m
                JOIN movie_owners o ON o.id = m.owner_id
                WHERE m.release_date BETWEEN $1::date AND $2::date
                  AND m.reminder_sent = FALSE
                  AND m.deleted_at IS NULL
                  AND o.email <> '';
                """,
                day_start.date(),
                day_end.date(),
            )
        return [
            DueReminder(
                movie_id=r["id"],
                owner_id=str(r["owner_id"]),
                owner_email=str(r["email"]),
                title=str(r["title"]),
                release_date=r["release_date"],
            )
            for r in rows
        ]

    async def mark_reminder_sent(self, *, movie_id: UUID) -> bool:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                UPDATE movies
                SET reminder_sent = TRUE,
                    updated_at = NOW()
                WHERE id = $1
                RETURNING id;
                """,
                movie_id,
            )
        return bool(row)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
        self._pool = None
