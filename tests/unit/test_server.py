"""Tests for the HTTP API."""

import json

import pytest
from fastapi.testclient import TestClient

from crit.document import STALE_NOTICE, ReviewDocument, snapshot_path_for
from crit.server import create_app
from crit.session import ReviewSession


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "plan.md"
    path.write_text("one\ntwo\nthree\nfour\nfive\n")
    return path


@pytest.fixture
def session(source):
    session = ReviewSession(ReviewDocument.load(source), debounce_seconds=60)
    yield session
    session.close()


@pytest.fixture
def client(session):
    return TestClient(create_app(session))


class TestDocumentRoutes:
    """Tests for document and comment routes."""

    def test_health(self, client):
        assert client.get("/api/health").json() == {"status": "ok"}

    def test_get_document(self, client):
        response = client.get("/api/document")

        assert response.status_code == 200
        assert response.json() == {
            "filename": "plan.md",
            "content": "one\ntwo\nthree\nfour\nfive\n",
            "source_changed": False,
        }

    def test_create_and_list_comments(self, client):
        response = client.post("/api/comments", json={"start_line": 2, "end_line": 3, "body": "hm"})

        assert response.status_code == 201
        created = response.json()
        assert created["id"] == "c1"
        assert created["start_line"] == 2

        listed = client.get("/api/comments").json()
        assert [c["id"] for c in listed] == ["c1"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"start_line": 1, "end_line": 1, "body": ""},
            {"start_line": 0, "end_line": 1, "body": "x"},
            {"start_line": 3, "end_line": 2, "body": "x"},
        ],
    )
    def test_create_rejects_invalid_comment(self, client, payload):
        response = client.post("/api/comments", json=payload)

        assert response.status_code == 400
        assert client.get("/api/comments").json() == []

    def test_create_rejects_malformed_body(self, client):
        response = client.post("/api/comments", json={"body": "missing lines"})
        assert response.status_code == 422

    def test_update_comment(self, client):
        client.post("/api/comments", json={"start_line": 1, "end_line": 1, "body": "a"})

        response = client.put("/api/comments/c1", json={"body": "b"})

        assert response.status_code == 200
        assert response.json()["body"] == "b"

    def test_update_unknown_comment(self, client):
        response = client.put("/api/comments/c9", json={"body": "b"})
        assert response.status_code == 404

    def test_update_with_empty_body(self, client):
        client.post("/api/comments", json={"start_line": 1, "end_line": 1, "body": "a"})
        assert client.put("/api/comments/c1", json={"body": ""}).status_code == 400

    def test_delete_comment(self, client):
        client.post("/api/comments", json={"start_line": 1, "end_line": 1, "body": "a"})

        assert client.delete("/api/comments/c1").json() == {"status": "deleted"}
        assert client.delete("/api/comments/c1").status_code == 404


class TestStaleAndFinish:
    """Tests for stale notice and finish routes."""

    def test_stale_notice_round_trip(self, source):
        snapshot_path_for(source, source.parent).write_text(
            json.dumps({"file": "plan.md", "file_hash": "sha256:old", "updated_at": "", "comments": []})
        )
        session = ReviewSession(ReviewDocument.load(source), debounce_seconds=60)
        client = TestClient(create_app(session))

        assert client.get("/api/stale").json() == {"notice": STALE_NOTICE}
        assert client.delete("/api/stale").json() == {"status": "ok"}
        assert client.get("/api/stale").json() == {"notice": ""}
        session.close()

    def test_finish_flushes_and_requests_shutdown(self, client, session):
        stopped = []
        session.on_shutdown_requested(lambda: stopped.append(True))
        client.post("/api/comments", json={"start_line": 2, "end_line": 2, "body": "typo"})

        response = client.post("/api/finish")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "finished"
        assert body["review_file"] == str(session.document.review_path)
        assert "typo" in session.document.review_path.read_text()
        assert stopped == [True]


class TestLifespan:
    """Tests for app shutdown."""

    def test_app_shutdown_flushes_pending_comments(self, session):
        with TestClient(create_app(session)) as client:
            client.post("/api/comments", json={"start_line": 1, "end_line": 1, "body": "on exit"})
            assert session.engine.pending

        data = json.loads(session.document.snapshot_path.read_text())
        assert [c["body"] for c in data["comments"]] == ["on exit"]
        assert not session.engine.pending
