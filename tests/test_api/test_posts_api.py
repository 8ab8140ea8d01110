"""Integration tests for the read API using FastAPI TestClient."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from devdose.api.app import create_app
from devdose.processing.service import VerificationOutcome
from devdose.storage.connection import close_connection
from tests.conftest import make_output, make_post_row


def _code(n: int) -> str:
    return f"const answer{n} = {n};\nconsole.log(answer{n});\nexport {{ answer{n} }};"


class _FakeProcessor:
    """Returns a scripted suggestion, or None to simulate a failed check."""

    def __init__(self):
        self.suggestion = None
        self.corrected = False

    async def verify_and_correct(self, post):
        if self.suggestion is None:
            return None
        return VerificationOutcome(corrected=self.corrected, original=post, suggestion=self.suggestion)


@pytest.fixture
def processor() -> _FakeProcessor:
    return _FakeProcessor()


@pytest.fixture
def app(settings, processor):
    application = create_app(settings, processor=processor)
    yield application
    close_connection(settings.db_path)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def seeded(app):
    store = app.state.post_store
    store.upsert_many(
        [
            make_post_row(_code(1), title="Effect cleanup", tags=["react", "hooks"], quality_score=80),
            make_post_row(_code(2), title="Typed props", language="typescript",
                          tags=["react", "typescript"], difficulty="advanced", quality_score=92),
            make_post_row(_code(3), title="Grid areas", language="css", tags=["css"],
                          difficulty="intermediate", category="Did You Know", quality_score=71),
        ]
    )
    rows, _ = store.list_posts(sort="title", order="asc")
    return {row.title: row for row in rows}


class TestHealthAndStats:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_cross_origin_reads_are_allowed(self, client):
        resp = client.get("/api/health", headers={"Origin": "https://app.devdose.dev"})
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_stats_on_empty_db(self, client):
        data = client.get("/api/stats").json()
        assert data["total_posts"] == 0
        assert data["total_views"] == 0
        assert [d["name"] for d in data["difficulties"]] == ["beginner", "intermediate", "advanced"]
        assert data["top_tags"] == []

    def test_stats(self, client, seeded):
        client.get(f"/api/posts/{seeded['Typed props'].id}")
        data = client.get("/api/stats").json()
        assert data["total_posts"] == 3
        assert data["total_views"] == 1
        assert data["top_tags"][0] == {"name": "react", "count": 2}


class TestListPosts:
    def test_empty(self, client):
        data = client.get("/api/posts").json()
        assert data["posts"] == []
        assert data["pagination"] == {"page": 1, "limit": 20, "total": 0, "total_pages": 0}

    def test_pagination(self, client, seeded):
        data = client.get("/api/posts", params={"limit": 2, "page": 2, "sort": "title", "order": "asc"}).json()
        assert [p["title"] for p in data["posts"]] == ["Typed props"]
        assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "total_pages": 2}

    def test_filters(self, client, seeded):
        data = client.get("/api/posts", params={"tags": "react,hooks"}).json()
        assert [p["title"] for p in data["posts"]] == ["Effect cleanup"]
        data = client.get("/api/posts", params={"language": "css"}).json()
        assert data["posts"][0]["tags"] == ["css"]
        data = client.get("/api/posts", params={"difficulty": "advanced", "sort": "quality_score"}).json()
        assert [p["quality_score"] for p in data["posts"]] == [92]

    @pytest.mark.parametrize(
        "params",
        [{"limit": 101}, {"limit": 0}, {"page": 0}, {"sort": "view_count"}, {"order": "sideways"}],
    )
    def test_invalid_parameters(self, client, params):
        assert client.get("/api/posts", params=params).status_code == 422


class TestRandomAndSearch:
    def test_random_is_capped(self, client, seeded):
        data = client.get("/api/posts/random", params={"count": 50}).json()
        assert len(data["posts"]) == 3

    def test_random_with_filter(self, client, seeded):
        data = client.get("/api/posts/random", params={"count": 3, "language": "typescript"}).json()
        assert [p["title"] for p in data["posts"]] == ["Typed props"]

    def test_search(self, client, seeded):
        data = client.get("/api/posts/search", params={"q": "props"}).json()
        assert data["query"] == "props"
        assert [p["title"] for p in data["posts"]] == ["Typed props"]
        assert data["pagination"]["total"] == 1

    def test_search_orders_by_quality(self, client, seeded):
        data = client.get("/api/posts/search", params={"q": "re"}).json()
        scores = [p["quality_score"] for p in data["posts"]]
        assert scores == sorted(scores, reverse=True)

    def test_search_needs_two_characters(self, client):
        assert client.get("/api/posts/search", params={"q": "a"}).status_code == 422


class TestGetPost:
    def test_each_read_counts_a_view(self, client, seeded):
        post_id = seeded["Grid areas"].id
        assert client.get(f"/api/posts/{post_id}").json()["view_count"] == 1
        second = client.get(f"/api/posts/{post_id}").json()
        assert second["view_count"] == 2
        assert second["language"] == "css"

    def test_missing(self, client):
        assert client.get("/api/posts/999").status_code == 404


class TestFacets:
    def test_tags_languages_difficulties(self, client, seeded):
        assert client.get("/api/tags").json()[0] == {"name": "react", "count": 2}
        languages = {d["name"]: d["count"] for d in client.get("/api/languages").json()}
        assert languages == {"css": 1, "javascript": 1, "typescript": 1}
        difficulties = client.get("/api/difficulties").json()
        assert [d["name"] for d in difficulties] == ["beginner", "intermediate", "advanced"]
        assert [d["count"] for d in difficulties] == [1, 1, 1]


class TestReport:
    def test_correction_is_stored(self, client, seeded, processor):
        post = seeded["Effect cleanup"]
        processor.suggestion = make_output(title="Clean up effects on unmount")
        processor.corrected = True

        resp = client.post(f"/api/posts/{post.id}/report")

        assert resp.status_code == 200
        body = resp.json()
        assert body["corrected"] is True
        assert body["post"]["title"] == "Clean up effects on unmount"
        assert client.get(f"/api/posts/{post.id}").json()["title"] == "Clean up effects on unmount"

    def test_no_change_needed(self, client, seeded, processor):
        post = seeded["Grid areas"]
        processor.suggestion = make_output(title=post.title)
        processor.corrected = False

        body = client.post(f"/api/posts/{post.id}/report").json()

        assert body["corrected"] is False
        assert body["post"]["title"] == "Grid areas"

    def test_code_collision_is_a_conflict(self, client, seeded, processor):
        post = seeded["Effect cleanup"]
        processor.suggestion = make_output(code=_code(2))
        processor.corrected = True
        assert client.post(f"/api/posts/{post.id}/report").status_code == 409

    def test_failed_verification(self, client, seeded):
        assert client.post(f"/api/posts/{seeded['Typed props'].id}/report").status_code == 502

    def test_missing_post(self, client):
        assert client.post("/api/posts/999/report").status_code == 404
