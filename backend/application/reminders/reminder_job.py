from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from application.ports.clock_port import ClockPort
from application.ports.email_sender_port import EmailSenderPort
from application.ports.movie_store_port import MovieStorePort
from domain.movies import DueReminder
from domain.movies.calendar import day_bounds

logger = logging.getLogger(__name__)


def reminder_idempotency_key(reminder: DueReminder) -> str:
    """Stable per movie and release date, so a provider can drop a resend."""
    return f"movie-reminder/{reminder.movie_id}/{reminder.release_date.isoformat()}"


@dataclass
class ReminderRunReport:
    due: int = 0
    sent: list[UUID] = field(default_factory=list)
    failed: list[UUID] = field(default_factory=list)


class ReminderJob:
    """One firing of the release-day reminder scan.

    Movies are processed sequentially. A delivery failure is logged and
    leaves `reminder_sent` false so the next firing retries it; a success
    flips the flag so the movie is never mailed again.
    """

    def __init__(
        self,
        *,
        store: MovieStorePort,
        email_sender: EmailSenderPort,
        clock: ClockPort,
        send_timeout_s: Optional[float] = 10.0,
    ) -> None:
        self._store = store
        self._email_sender = email_sender
        self._clock = clock
        self._send_timeout_s = send_timeout_s

    async def _send(self, reminder: DueReminder) -> None:
        coro = self._email_sender.send_movie_reminder(
            to=reminder.owner_email,
            movie_title=reminder.title,
            release_date=reminder.release_date,
            idempotency_key=reminder_idempotency_key(reminder),
        )
        if self._send_timeout_s:
            await asyncio.wait_for(coro, timeout=float(self._send_timeout_s))
        else:
            await coro

    async def run_once(self) -> ReminderRunReport:
        day_start, day_end = day_bounds(self._clock.now())
        due = await self._store.find_due_for_reminder(day_start=day_start, day_end=day_end)
        report = ReminderRunReport(due=len(due))

        for reminder in due:
            try:
                await self._send(reminder)
                await self._store.mark_reminder_sent(movie_id=reminder.movie_id)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("failed to send reminder email (movie_id=%s)", reminder.movie_id)
                report.failed.append(reminder.movie_id)
                continue
            report.sent.append(reminder.movie_id)

        if report.due:
            logger.info(
                "reminder run finished (due=%s, sent=%s, failed=%s)",
                report.due,
                len(report.sent),
                len(report.failed),
            )
        return report
