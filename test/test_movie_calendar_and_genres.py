import sys
import unittest
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from domain.movies.calendar import day_bounds, is_after_now, next_top_of_hour, parse_day
from domain.movies.genres import format_genre_listing, normalize_genres, sort_genres

_TZ = timezone(timedelta(hours=-3))


class TestCalendar(unittest.TestCase):
    def test_day_bounds(self) -> None:
        start, end = day_bounds(datetime(2024, 6, 10, 15, 30, tzinfo=_TZ))
        self.assertEqual(start, datetime(2024, 6, 10, tzinfo=_TZ))
        self.assertEqual(end, datetime(2024, 6, 10, 23, 59, 59, 999999, tzinfo=_TZ))

    def test_next_top_of_hour(self) -> None:
        now = datetime(2024, 6, 10, 10, 15, tzinfo=_TZ)
        self.assertEqual(next_top_of_hour(now), datetime(2024, 6, 10, 11, 0, tzinfo=_TZ))
        self.assertEqual((next_top_of_hour(now) - now).total_seconds(), 2700)

        late = datetime(2024, 12, 31, 23, 59, 59, tzinfo=_TZ)
        self.assertEqual(next_top_of_hour(late), datetime(2025, 1, 1, 0, 0, tzinfo=_TZ))

    def test_is_after_now(self) -> None:
        now = datetime(2024, 6, 10, 0, 0, tzinfo=_TZ)
        self.assertFalse(is_after_now(date(2024, 6, 10), now))
        self.assertTrue(is_after_now(date(2024, 6, 11), now))

    def test_parse_day(self) -> None:
        self.assertEqual(parse_day("2024-06-10"), date(2024, 6, 10))
        self.assertEqual(parse_day(date(2024, 6, 10)), date(2024, 6, 10))
        self.assertEqual(parse_day("2024-06-10T02:00:00+00:00", _TZ), date(2024, 6, 9))
        self.assertIsNone(parse_day("10/06/2024"))
        self.assertIsNone(parse_day(""))
        self.assertIsNone(parse_day(None))


class TestGenres(unittest.TestCase):
    def test_listing_dedupes_case_insensitively_and_capitalizes(self) -> None:
        self.assertEqual(format_genre_listing(["Ação", "ação", "drama"]), ["Ação", "Drama"])

    def test_sort_ignores_diacritics(self) -> None:
        ordered = sort_genres(["drama", "ação", "aventura", "acao"])
        self.assertEqual(ordered, ["acao", "ação", "aventura", "drama"])

    def test_only_first_letter_is_capitalized(self) -> None:
        self.assertEqual(format_genre_listing(["ficção científica"]), ["Ficção científica"])

    def test_normalize_drops_empties(self) -> None:
        self.assertEqual(normalize_genres([" ", "Terror", "terror "]), ["terror"])
        self.assertEqual(normalize_genres([]), [])


if __name__ == "__main__":
    unittest.main()
