"""
Tests for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.auth import get_current_user_id, get_session_store
from app.config import Settings
from app.database import User
from app.errors import UserNotFoundError, clean_title
from app.facts import FACTS_BY_KEY, FactGenerator
from app.main import create_app, get_database, get_fact_generator, get_preferences, get_tmdb


class FakePreferenceStore:
    """In-memory stand-in for PreferenceStore."""

    def __init__(self, users: Dict[str, User]):
        self.users = users

    async def fetch_by_id(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def set_favorite(self, user_id: str, title: str) -> User:
        title = clean_title(title)
        user = self.users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        user.favorite_movie = title
        return user

    async def count_users(self) -> int:
        return len(self.users)


class AnonymousSessions:
    async def resolve(self, token):
        return None


class FakeDatabase:
    async def ping(self) -> bool:
        return True


def _disk_full():
    return OperationalError("SELECT 1", {}, Exception("disk full"))


class FailingPreferenceStore:
    """Every storage call fails the way a broken database would."""

    async def fetch_by_id(self, user_id: str) -> Optional[User]:
        raise _disk_full()

    async def set_favorite(self, user_id: str, title: str) -> User:
        raise _disk_full()

    async def count_users(self) -> int:
        raise _disk_full()


class FailingSessions:
    async def resolve(self, token):
        raise _disk_full()


class FailingDatabase:
    async def ping(self) -> bool:
        raise _disk_full()


@pytest.fixture
def users():
    return {"user-1": User(id="user-1", name="Alice", email="alice@example.com", favorite_movie=None)}


@pytest.fixture
def app(users):
    app = create_app(Settings(_env_file=None, session_secret="test-secret"))
    app.dependency_overrides[get_preferences] = lambda: FakePreferenceStore(users)
    app.dependency_overrides[get_fact_generator] = lambda: FactGenerator(None)
    app.dependency_overrides[get_tmdb] = lambda: None
    app.dependency_overrides[get_database] = lambda: FakeDatabase()
    app.dependency_overrides[get_session_store] = lambda: AnonymousSessions()
    return app


@pytest.fixture
def anon_client(app):
    return TestClient(app)


@pytest.fixture
def client(app):
    """Client signed in as user-1."""
    app.dependency_overrides[get_current_user_id] = lambda: "user-1"
    return TestClient(app)


# ── Search ────────────────────────────────────────────────


def test_search_short_query(anon_client):
    resp = anon_client.get("/api/search-movies", params={"q": "h"})
    assert resp.status_code == 200
    assert resp.json() == {"results": []}


def test_search_missing_query(anon_client):
    resp = anon_client.get("/api/search-movies")
    assert resp.status_code == 200
    assert resp.json() == {"results": []}


def test_search_fallback_without_credentials(anon_client):
    resp = anon_client.get("/api/search-movies", params={"q": "godfather"})
    data = resp.json()
    assert resp.status_code == 200
    assert data["fallback"] is True
    assert data["results"] == [{
        "id": "fallback-0",
        "title": "The Godfather",
        "year": 1972,
        "poster": None,
        "overview": "The aging patriarch of an organized crime dynasty transfers control to his reluctant son.",
    }]


# ── Favorite movie ────────────────────────────────────────


def test_favorite_requires_auth(anon_client):
    assert anon_client.get("/api/user/favorite-movie").status_code == 401
    resp = anon_client.post("/api/user/favorite-movie", json={"favoriteMovie": "Avatar"})
    assert resp.status_code == 401


def test_set_and_get_favorite(client):
    resp = client.post("/api/user/favorite-movie", json={"favoriteMovie": "  Inception "})
    assert resp.status_code == 200
    data = resp.json()
    assert data["message"] == "Favorite movie updated successfully"
    assert data["user"] == {
        "id": "user-1",
        "name": "Alice",
        "email": "alice@example.com",
        "favoriteMovie": "Inception",
    }
    assert "Deprecation" not in resp.headers

    resp = client.get("/api/user/favorite-movie")
    assert resp.status_code == 200
    assert resp.json()["user"]["favoriteMovie"] == "Inception"


def test_set_favorite_legacy_body(client):
    resp = client.post("/api/user/favorite-movie", json={"movie": "Titanic"})
    assert resp.status_code == 200
    assert resp.json()["user"]["favoriteMovie"] == "Titanic"
    assert resp.headers["Deprecation"] == "true"


@pytest.mark.parametrize("body", [{"favoriteMovie": "   "}, {"favoriteMovie": ""}, {}])
def test_set_favorite_blank_title(client, users, body):
    users["user-1"].favorite_movie = "Avatar"
    resp = client.post("/api/user/favorite-movie", json=body)
    assert resp.status_code == 400
    assert users["user-1"].favorite_movie == "Avatar"


def test_set_favorite_wrong_type(client):
    resp = client.post("/api/user/favorite-movie", json={"favoriteMovie": ["Avatar"]})
    assert resp.status_code == 400


def test_get_favorite_user_missing(app):
    app.dependency_overrides[get_current_user_id] = lambda: "ghost"
    resp = TestClient(app).get("/api/user/favorite-movie")
    assert resp.status_code == 404


# ── Facts ─────────────────────────────────────────────────


def test_generate_fact_home_alone_2(anon_client):
    resp = anon_client.post("/api/generate-fact", json={
        "movie": "Home Alone 2: Lost in New York",
        "requestId": 7,
        "excludeFact": "",
    })
    assert resp.status_code == 200
    assert resp.json()["fact"] == FACTS_BY_KEY["home alone 2"][1]
    assert resp.json()["source"] == "fallback"


def test_generate_fact_excludes_previous(anon_client):
    facts = FACTS_BY_KEY["titanic"]
    for request_id in range(6):
        resp = anon_client.post("/api/generate-fact", json={
            "movie": "Titanic",
            "requestId": request_id,
            "excludeFact": facts[0],
        })
        assert resp.json()["fact"] != facts[0]


def test_generate_fact_unknown_movie_without_llm(anon_client):
    resp = anon_client.post("/api/generate-fact", json={"movie": "Unknown Obscure Film"})
    assert resp.status_code == 200
    assert "don't have specific facts" in resp.json()["fact"]
    assert resp.json()["source"] == "generic"


@pytest.mark.parametrize("body", [{}, {"movie": ""}, {"movie": "  "}])
def test_generate_fact_missing_movie(anon_client, body):
    resp = anon_client.post("/api/generate-fact", json=body)
    assert resp.status_code == 400


def test_movie_fact_requires_auth(anon_client):
    assert anon_client.get("/api/movie-fact").status_code == 401


def test_movie_fact_without_favorite(client):
    resp = client.get("/api/movie-fact")
    assert resp.status_code == 400
    assert "set your favorite movie first" in resp.json()["detail"]


def test_movie_fact_for_stored_favorite(client, users):
    users["user-1"].favorite_movie = "Avatar"
    resp = client.get("/api/movie-fact")
    assert resp.status_code == 200
    data = resp.json()
    assert data["movie"] == "Avatar"
    assert data["fact"] in FACTS_BY_KEY["avatar"]
    assert data["source"] == "fallback"
    assert data["user"]["email"] == "alice@example.com"


# ── Storage failures ──────────────────────────────────


def test_set_favorite_storage_error(client, app):
    app.dependency_overrides[get_preferences] = lambda: FailingPreferenceStore()
    resp = client.post("/api/user/favorite-movie", json={"favoriteMovie": "Avatar"})
    assert resp.status_code == 500
    detail = resp.json()["detail"]
    assert detail.startswith("Failed to save favorite movie")
    assert "disk full" in detail


def test_get_favorite_storage_error(client, app):
    app.dependency_overrides[get_preferences] = lambda: FailingPreferenceStore()
    resp = client.get("/api/user/favorite-movie")
    assert resp.status_code == 500
    assert "disk full" in resp.json()["detail"]


def test_movie_fact_storage_error(client, app):
    app.dependency_overrides[get_preferences] = lambda: FailingPreferenceStore()
    resp = client.get("/api/movie-fact")
    assert resp.status_code == 500
    assert "disk full" in resp.json()["detail"]


def test_session_lookup_storage_error(anon_client, app):
    app.dependency_overrides[get_session_store] = lambda: FailingSessions()
    resp = anon_client.get("/api/user/favorite-movie")
    assert resp.status_code == 500
    assert "disk full" in resp.json()["detail"]


def test_health_degraded_when_database_down(anon_client, app):
    app.dependency_overrides[get_database] = lambda: FailingDatabase()
    resp = anon_client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "degraded"
    assert data["database"].startswith("error:")
    assert "disk full" in data["database"]


# ── Misc ──────────────────────────────────────────────────


def test_health(anon_client):
    resp = anon_client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["database"] == "ok"
    assert data["user_count"] == 1


def test_session_endpoint_anonymous(anon_client):
    resp = anon_client.get("/api/auth/session")
    assert resp.status_code == 200
    assert resp.json() == {}


def test_root_serves_html(anon_client):
    resp = anon_client.get("/")
    assert resp.status_code == 200
    assert "Movie Facts" in resp.text
