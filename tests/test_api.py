"""
HTTP surface tests with FastAPI's TestClient and an injected in-memory state.
"""

import pytest
from fastapi.testclient import TestClient

from rec_server.app import create_app
from rec_server.config import ServerConfig
from rec_server.state import AppState

from .helpers import build_engine, make_signal, run
from .test_engine import catalog, user_signals


@pytest.fixture
def engine():
    signals = user_signals() + [make_signal("dave", "item4", 1, completion_rate=0.4)]
    return build_engine(items=catalog(), signals=signals)


@pytest.fixture
def app(engine):
    return create_app(state=AppState(ServerConfig(), engine), run_background=False)


@pytest.fixture
def client(app):
    return TestClient(app)


class TestRoot:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["data_source"] == "memory"

    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["status"] == "healthy"
        assert body["session_cache"] == "InMemorySessionCache"


class TestRecommendations:
    def test_user_recommendations(self, client):
        response = client.get("/api/recommendations", params={"user_id": "alice", "limit": 5})
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 5
        assert body["cold_start"] is False
        assert [item["id"] for item in body["items"][:2]] == ["item2", "item3"]
        assert body["items"][0]["position"] == 1
        assert body["items"][0]["source"] == "collaborative"

    def test_session_header_cold_start(self, client):
        response = client.get("/api/recommendations", headers={"X-Session-Id": "new-session"})
        assert response.status_code == 200
        assert response.json()["cold_start"] is True

    def test_missing_identity_is_bad_request(self, client):
        assert client.get("/api/recommendations").status_code == 400

    @pytest.mark.parametrize("limit", [0, 500])
    def test_bad_limit_is_bad_request(self, client, limit):
        response = client.get("/api/recommendations", params={"user_id": "alice", "limit": limit})
        assert response.status_code == 400

    def test_feed(self, client):
        response = client.get(
            "/api/recommendations/feed",
            params={"user_id": "alice", "limit": 8},
            headers={"User-Agent": "Mozilla/5.0 (iPhone) Mobile"},
        )
        assert response.status_code == 200
        ids = [item["id"] for item in response.json()["items"]]
        assert len(ids) == 8
        assert len(ids) == len(set(ids))

    def test_similar(self, client):
        response = client.get("/api/recommendations/similar/item0", params={"limit": 3})
        assert response.status_code == 200
        assert response.json()["count"] == 3

    def test_similar_unknown_is_not_found(self, client):
        assert client.get("/api/recommendations/similar/missing").status_code == 404

    def test_continue_watching(self, client):
        response = client.get("/api/recommendations/continue-watching", params={"user_id": "dave"})
        assert response.status_code == 200
        assert [item["id"] for item in response.json()["items"]] == ["item4"]
        assert client.get("/api/recommendations/continue-watching").status_code == 400

    def test_last_watched_similar(self, client):
        response = client.get(
            "/api/recommendations/last-watched-similar", params={"user_id": "dave", "limit": 3}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["last_watched_id"] == "item4"
        assert body["count"] == 3
        assert "item4" not in [item["id"] for item in body["items"]]

    @pytest.mark.parametrize("params", [{}, {"user_id": "nobody"}])
    def test_last_watched_similar_empty(self, client, params):
        response = client.get("/api/recommendations/last-watched-similar", params=params)
        assert response.status_code == 200
        assert response.json() == {
            "items": [], "count": 0, "last_watched_id": None, "last_watched_title": None,
        }


class TestTrendingRoutes:
    def test_recalculate_then_read(self, client):
        response = client.post("/api/recommendations/trending/recalculate", json={"period": "today"})
        assert response.status_code == 200
        assert response.json()["count"] == 24

        body = client.get("/api/recommendations/trending", params={"period": "today", "limit": 5}).json()
        assert body["period"] == "today"
        assert body["count"] == 5
        scores = [item["score"] for item in body["items"]]
        assert scores == sorted(scores, reverse=True)

    def test_unknown_period(self, client):
        assert client.get("/api/recommendations/trending", params={"period": "year"}).status_code == 400
        response = client.post("/api/recommendations/trending/recalculate", json={"period": "year"})
        assert response.status_code == 400


class TestTracking:
    def test_track_view_is_accepted(self, app, engine):
        with TestClient(app) as client:
            response = client.post(
                "/api/recommendations/track-view",
                json={"session_id": "s1", "content_id": "item7", "category_ids": ["news"]},
            )
            assert response.status_code == 202
            assert response.json() == {"accepted": True}
        # leaving the client runs shutdown, which drains best-effort tasks
        cached = run(engine.session_cache.get("s1"))
        assert cached.viewed_content_ids == ["item7"]
        assert cached.category_ids == {"news"}

    def test_track_like_is_accepted(self, app, engine):
        with TestClient(app) as client:
            response = client.post(
                "/api/recommendations/track-like",
                json={"session_id": "s2", "content_id": "item3"},
            )
            assert response.status_code == 202
        assert run(engine.session_cache.get("s2")).liked_content_ids == {"item3"}

    def test_blank_ids_rejected(self, client):
        response = client.post(
            "/api/recommendations/track-view", json={"session_id": " ", "content_id": "item1"}
        )
        assert response.status_code == 400

    def test_clear_session(self, client, engine):
        run(engine.track_content_view("s9", "item1"))
        assert client.delete("/api/recommendations/sessions/s9").status_code == 204
        assert run(engine.session_cache.get("s9")) is None
