import asyncio
import sys
import unittest
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from application.ports.email_sender_port import EmailDeliveryError
from application.reminders.reminder_job import ReminderJob, reminder_idempotency_key
from domain.movies import DueReminder
from infrastructure.persistence.postgres.movie_store import InMemoryMovieStore

_TZ = timezone(timedelta(hours=-3))


class _FixedClock:
    def __init__(self, now: datetime) -> None:
        self._now = now

    @property
    def tz(self):
        return self._now.tzinfo

    def now(self) -> datetime:
        return self._now


class _FlakySender:
    """Fails for titles listed in `fail_titles`, records everything else."""

    def __init__(self, fail_titles=()) -> None:
        self.fail_titles = set(fail_titles)
        self.sent: list[dict] = []

    async def send_movie_reminder(self, *, to, movie_title, release_date, idempotency_key=None) -> None:
        if movie_title in self.fail_titles:
            raise EmailDeliveryError("provider rejected the message")
        self.sent.append(
            {"to": to, "title": movie_title, "release_date": release_date, "key": idempotency_key}
        )

    async def close(self) -> None:
        return None


class _HangingSender(_FlakySender):
    async def send_movie_reminder(self, *, to, movie_title, release_date, idempotency_key=None) -> None:
        await asyncio.sleep(10)


class TestReminderJob(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.store = InMemoryMovieStore()
        self.clock = _FixedClock(datetime(2024, 6, 10, 9, 0, tzinfo=_TZ))
        await self.store.register_owner(user_id="u1", email="Fan@Example.com", name="Fan")

    async def _movie(self, title: str, release: date, owner_id: str = "u1"):
        return await self.store.create_movie(owner_id=owner_id, fields={"title": title, "release_date": release})

    async def test_failure_is_isolated_and_retried_next_run(self) -> None:
        first = await self._movie("Dune", date(2024, 6, 10))
        second = await self._movie("Alien", date(2024, 6, 10))
        sender = _FlakySender(fail_titles={"Dune"})
        job = ReminderJob(store=self.store, email_sender=sender, clock=self.clock)

        with self.assertLogs("application.reminders.reminder_job", level="ERROR"):
            report = await job.run_once()

        self.assertEqual(report.due, 2)
        self.assertEqual(report.sent, [second.id])
        self.assertEqual(report.failed, [first.id])
        self.assertFalse((await self.store.find_by_id(movie_id=first.id, owner_id="u1")).reminder_sent)
        self.assertTrue((await self.store.find_by_id(movie_id=second.id, owner_id="u1")).reminder_sent)
        self.assertEqual(sender.sent[0]["to"], "fan@example.com")
        self.assertEqual(sender.sent[0]["key"], f"movie-reminder/{second.id}/2024-06-10")

        # Next firing: only the failed one is retried.
        sender.fail_titles.clear()
        report = await job.run_once()
        self.assertEqual(report.sent, [first.id])
        self.assertEqual([s["title"] for s in sender.sent], ["Alien", "Dune"])

        report = await job.run_once()
        self.assertEqual(report.due, 0)

    async def test_only_todays_live_movies_with_an_owner_email(self) -> None:
        await self._movie("Yesterday", date(2024, 6, 9))
        await self._movie("Tomorrow", date(2024, 6, 11))
        deleted = await self._movie("Deleted", date(2024, 6, 10))
        await self.store.soft_delete(movie_id=deleted.id, owner_id="u1")
        await self._movie("No email", date(2024, 6, 10), owner_id="ghost")
        today = await self._movie("Today", date(2024, 6, 10))

        sender = _FlakySender()
        report = await ReminderJob(store=self.store, email_sender=sender, clock=self.clock).run_once()

        self.assertEqual(report.sent, [today.id])
        self.assertEqual([s["title"] for s in sender.sent], ["Today"])

    async def test_send_timeout_counts_as_failure(self) -> None:
        movie = await self._movie("Dune", date(2024, 6, 10))
        job = ReminderJob(store=self.store, email_sender=_HangingSender(), clock=self.clock, send_timeout_s=0.01)

        with self.assertLogs("application.reminders.reminder_job", level="ERROR"):
            report = await job.run_once()

        self.assertEqual(report.failed, [movie.id])
        self.assertFalse((await self.store.find_by_id(movie_id=movie.id, owner_id="u1")).reminder_sent)

    async def test_nothing_due_is_a_quiet_noop(self) -> None:
        report = await ReminderJob(store=self.store, email_sender=_FlakySender(), clock=self.clock).run_once()
        self.assertEqual((report.due, report.sent, report.failed), (0, [], []))

    def test_idempotency_key_is_stable(self) -> None:
        r = DueReminder(
            movie_id="m-1",  # type: ignore[arg-type]
            owner_id="u1",
            owner_email="fan@example.com",
            title="Dune",
            release_date=date(2024, 6, 10),
        )
        self.assertEqual(reminder_idempotency_key(r), "movie-reminder/m-1/2024-06-10")


if __name__ == "__main__":
    unittest.main()
