import os
from typing import Optional


def _get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {key} expects an integer, got {raw}") from exc


def get_postgres_dsn() -> Optional[str]:
    """Service-side accessor for the Postgres DSN (movie catalog persistence).

    Priority:
    1) POSTGRES_DSN
    2) POSTGRES_HOST/PORT/USER/PASSWORD/DB

    Returns None when neither is configured; callers fall back to the
    in-memory store. `.env` loading is centralized in `config.settings`, so
    we only read environment variables here.
    """

    dsn = (os.getenv("POSTGRES_DSN") or "").strip()
    if dsn:
        return dsn

    host = (os.getenv("POSTGRES_HOST") or "").strip()
    if not host:
        return None

    port = _get_env_int("POSTGRES_PORT", 5432)
    user = os.getenv("POSTGRES_USER") or "postgres"
    password = os.getenv("POSTGRES_PASSWORD") or "postgres"
    db = os.getenv("POSTGRES_DB") or "movie_catalog"
    return f"postgresql://{user}:{password}@{host}:{port}/{db}"
