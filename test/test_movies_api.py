import sys
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import uuid4

_BACKEND_ROOT = Path(__file__).resolve().parents[1] / "backend"
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

from fastapi.testclient import TestClient

from application.movies.catalog_service import MovieCatalogService
from application.movies.filter_parser import encode_filter_query, encode_filter_segments
from domain.movies import FilterSet
from infrastructure.persistence.postgres.movie_store import InMemoryMovieStore
from server.main import app

_TZ = timezone(timedelta(hours=-3))


class _FixedClock:
    def __init__(self, now: datetime) -> None:
        self._now = now

    @property
    def tz(self):
        return self._now.tzinfo

    def now(self) -> datetime:
        return self._now


class TestMoviesApi(unittest.TestCase):
    def setUp(self) -> None:
        from server.api.rest import dependencies as deps

        self.store = InMemoryMovieStore()
        self.service = MovieCatalogService(
            store=self.store,
            clock=_FixedClock(datetime(2024, 6, 10, 15, 30, tzinfo=_TZ)),
        )
        app.dependency_overrides[deps.get_movie_store] = lambda: self.store
        app.dependency_overrides[deps.get_catalog_service] = lambda: self.service
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides = {}

    def _create(self, **fields) -> dict:
        resp = self.client.post("/api/v1/movies", json={"user_id": "u1", **fields})
        self.assertEqual(resp.status_code, 201, resp.text)
        return resp.json()

    def test_health(self) -> None:
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})

    def test_create_get_update_delete(self) -> None:
        body = self._create(title="Matrix", runtime=136, genres=["Ação", "ação"], tagline="")
        self.assertEqual(body["genres"], ["ação"])
        self.assertIsNone(body["tagline"])
        self.assertFalse(body["reminder_sent"])
        movie_id = body["id"]

        resp = self.client.get(f"/api/v1/movies/{movie_id}", params={"user_id": "u1"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["title"], "Matrix")

        # Other owners cannot see it.
        resp = self.client.get(f"/api/v1/movies/{movie_id}", params={"user_id": "u2"})
        self.assertEqual(resp.status_code, 404)

        resp = self.client.put(
            f"/api/v1/movies/{movie_id}",
            json={"user_id": "u1", "release_date": "2024-07-01"},
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        updated = resp.json()
        self.assertEqual(updated["release_date"], "2024-07-01")
        self.assertEqual(updated["runtime"], 136)

        resp = self.client.delete(f"/api/v1/movies/{movie_id}", params={"user_id": "u1"})
        self.assertEqual(resp.status_code, 204, resp.text)

        resp = self.client.get(f"/api/v1/movies/{movie_id}", params={"user_id": "u1"})
        self.assertEqual(resp.status_code, 404)
        resp = self.client.delete(f"/api/v1/movies/{movie_id}", params={"user_id": "u1"})
        self.assertEqual(resp.status_code, 404)

    def test_title_conflict_is_409(self) -> None:
        self._create(title="Matrix")
        resp = self.client.post("/api/v1/movies", json={"user_id": "u1", "title": "matrix"})
        self.assertEqual(resp.status_code, 409)
        self.assertIn("already exists", resp.json()["detail"])

        resp = self.client.post("/api/v1/movies", json={"user_id": "u2", "title": "Matrix"})
        self.assertEqual(resp.status_code, 201)

    def test_validation_errors(self) -> None:
        resp = self.client.post("/api/v1/movies", json={"user_id": "u1", "title": ""})
        self.assertEqual(resp.status_code, 422)
        resp = self.client.post("/api/v1/movies", json={"user_id": "u1", "title": "X", "vote_average": 11})
        self.assertEqual(resp.status_code, 422)
        resp = self.client.post("/api/v1/movies", json={"user_id": "u1", "title": "X", "reminder_sent": True})
        self.assertEqual(resp.status_code, 422)

        resp = self.client.get("/api/v1/movies/not-a-uuid", params={"user_id": "u1"})
        self.assertEqual(resp.status_code, 400)
        resp = self.client.put(f"/api/v1/movies/{uuid4()}", json={"user_id": "u1", "runtime": 90})
        self.assertEqual(resp.status_code, 404)

    def test_listing_with_query_and_path_filters(self) -> None:
        self._create(title="Matrix", runtime=136, genres=["ficção"], vote_average=8.7)
        self._create(title="Amélie", runtime=122, genres=["romance"], vote_average=8.3)
        self._create(title="Alien", runtime=117, genres=["terror"])

        resp = self.client.get("/api/v1/movies", params={"user_id": "u1", "per_page": 2})
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertEqual([m["title"] for m in body["items"]], ["Alien", "Amélie"])
        self.assertEqual((body["page"], body["per_page"], body["total"]), (1, 2, 3))

        resp = self.client.get(
            "/api/v1/movies",
            params={"user_id": "u1", "filters": "durationMin=120&genres=romance,ficção"},
        )
        self.assertEqual([m["title"] for m in resp.json()["items"]], ["Amélie", "Matrix"])

        resp = self.client.get("/api/v1/movies/f/dur-gte-120/vote-gte-85", params={"user_id": "u1"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual([m["title"] for m in resp.json()["items"]], ["Matrix"])

        resp = self.client.get("/api/v1/movies", params={"user_id": "u1", "search": "ali"})
        self.assertEqual([m["title"] for m in resp.json()["items"]], ["Alien"])

        # Garbled filter still yields a page.
        resp = self.client.get("/api/v1/movies", params={"user_id": "u1", "filters": "durationMin=lots"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["total"], 3)

        resp = self.client.get("/api/v1/movies", params={"user_id": "u1", "per_page": 51})
        self.assertEqual(resp.status_code, 422)

    def _titles(self, path: str, **params) -> list[str]:
        resp = self.client.get(path, params={"user_id": "u1", **params})
        self.assertEqual(resp.status_code, 200, resp.text)
        return sorted(m["title"] for m in resp.json()["items"])

    def test_path_filter_matches_query_filter_for_escaped_text(self) -> None:
        for title in ("Face/Off", "Face", "%41 Team", "A Team"):
            self._create(title=title)

        for term, expected in (("Face/Off", ["Face/Off"]), ("%41 Team", ["%41 Team"])):
            with self.subTest(term=term):
                f = FilterSet(search=term)
                via_path = self._titles("/api/v1/movies/f/" + "/".join(encode_filter_segments(f)))
                via_query = self._titles("/api/v1/movies", filters=encode_filter_query(f))
                self.assertEqual(via_path, expected)
                self.assertEqual(via_query, expected)

    def test_path_filter_with_accented_genre(self) -> None:
        self._create(title="Matrix", genres=["Ação"])
        self._create(title="Amélie", genres=["romance"])
        f = FilterSet(genres=("ação",))
        self.assertEqual(self._titles("/api/v1/movies/f/" + "/".join(encode_filter_segments(f))), ["Matrix"])

    def test_genres_and_owner_registration(self) -> None:
        self._create(title="One", genres=["Ação"])
        self._create(title="Two", genres=["ação", "drama"])

        resp = self.client.get("/api/v1/genres", params={"user_id": "u1"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json(), ["Ação", "Drama"])

        resp = self.client.post("/api/v1/owners", json={"user_id": "u1", "email": "Fan@Example.com", "name": "Fan"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["email"], "fan@example.com")

        resp = self.client.post("/api/v1/owners", json={"user_id": "u2", "email": "FAN@example.com"})
        self.assertEqual(resp.status_code, 409)


if __name__ == "__main__":
    unittest.main()
