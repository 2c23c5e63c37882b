from __future__ import annotations

import logging
from functools import lru_cache

from application.movies.catalog_service import MovieCatalogService
from application.reminders.reminder_job import ReminderJob
from config.settings import (
    CATALOG_DEFAULT_PER_PAGE,
    CATALOG_MAX_PER_PAGE,
    REMINDER_ENABLE,
    REMINDER_RUN_ON_STARTUP,
    REMINDER_SEND_TIMEOUT_S,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _build_movie_store():
    from config.database import get_postgres_dsn
    from infrastructure.persistence.postgres.movie_store import (
        InMemoryMovieStore,
        PostgresMovieStore,
    )

    dsn = get_postgres_dsn()
    if dsn:
        return PostgresMovieStore(dsn=dsn)
    logger.warning("No Postgres DSN configured; using the in-memory movie store")
    return InMemoryMovieStore()


@lru_cache(maxsize=1)
def _build_clock():
    from infrastructure.clock import SystemClock

    return SystemClock()


@lru_cache(maxsize=1)
def _build_email_sender():
    from infrastructure.email import create_email_sender

    return create_email_sender()


@lru_cache(maxsize=1)
def _build_catalog_service() -> MovieCatalogService:
    return MovieCatalogService(
        store=_build_movie_store(),
        clock=_build_clock(),
        default_per_page=CATALOG_DEFAULT_PER_PAGE,
        max_per_page=CATALOG_MAX_PER_PAGE,
    )


@lru_cache(maxsize=1)
def _build_reminder_scheduler():
    from infrastructure.scheduling.reminder_scheduler import ReminderScheduler

    job = ReminderJob(
        store=_build_movie_store(),
        email_sender=_build_email_sender(),
        clock=_build_clock(),
        send_timeout_s=REMINDER_SEND_TIMEOUT_S,
    )
    return ReminderScheduler(
        job=job,
        clock=_build_clock(),
        run_on_startup=REMINDER_RUN_ON_STARTUP,
    )


def get_movie_store():
    """Movie store singleton (Postgres when configured, otherwise in-memory)."""
    return _build_movie_store()


def get_catalog_service() -> MovieCatalogService:
    return _build_catalog_service()


def get_reminder_scheduler():
    return _build_reminder_scheduler()


async def start_background_jobs() -> None:
    if not REMINDER_ENABLE:
        logger.info("reminder scheduler disabled (REMINDER_ENABLE=false)")
        return
    _build_reminder_scheduler().start()


async def shutdown_dependencies() -> None:
    """Best-effort shutdown hooks for long-lived adapters (timer, pools, sessions)."""
    if _build_reminder_scheduler.cache_info().currsize:
        await _build_reminder_scheduler().shutdown()

    store = _build_movie_store()
    close = getattr(store, "close", None)
    if callable(close):
        await close()

    if _build_email_sender.cache_info().currsize:
        sender = _build_email_sender()
        close_sender = getattr(sender, "close", None)
        if callable(close_sender):
            await close_sender()
