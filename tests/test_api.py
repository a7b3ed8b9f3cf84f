"""
HTTP tests through FastAPI's TestClient.

The auth cookie is Secure, so the test client (plain http) does not send it
back on its own; authenticated requests pass the token explicitly.
"""

import gzip
import json

import pytest
from fastapi.testclient import TestClient

from shortener.core.exceptions import StorageUnavailableError
from shortener.core.security import issue_token
from shortener.core.setting import StorageStrategy
from shortener.main import create_app

BASE_URL = "http://localhost:8080"
JWT_SECRET = "test-secret"


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def token_from(response):
    header = response.headers["Authorization"]
    assert header.startswith("Bearer ")
    return header[len("Bearer "):]


def key_of(short_url):
    return short_url.rsplit("/", 1)[-1]


class TestTextShorten:

    def test_create_and_redirect(self, client):
        response = client.post("/", content="https://yandex.ru")

        assert response.status_code == 201
        assert response.text.startswith(f"{BASE_URL}/")

        redirect = client.get(f"/{key_of(response.text)}", follow_redirects=False)
        assert redirect.status_code == 307
        assert redirect.headers["Location"] == "https://yandex.ru"

    def test_second_post_conflicts_with_same_url(self, client):
        first = client.post("/", content="https://yandex.ru")
        second = client.post("/", content="https://yandex.ru")

        assert second.status_code == 409
        assert second.text == first.text

    def test_empty_body(self, client):
        assert client.post("/", content="").status_code == 400

    def test_invalid_url(self, client):
        assert client.post("/", content="not-a-url").status_code == 400


class TestRedirect:

    def test_unknown_key(self, client):
        assert client.get("/abcde", follow_redirects=False).status_code == 404

    def test_malformed_key(self, client):
        assert client.get("/abc12", follow_redirects=False).status_code == 400


class TestJSONShorten:

    def test_create(self, client):
        response = client.post("/api/shorten", json={"url": "https://example.com"})

        assert response.status_code == 201
        assert response.json()["result"].startswith(f"{BASE_URL}/")

    def test_conflict_returns_existing(self, client):
        first = client.post("/api/shorten", json={"url": "https://example.com"})
        second = client.post("/api/shorten", json={"url": "https://example.com"})

        assert second.status_code == 409
        assert second.json() == first.json()

    def test_invalid_url(self, client):
        response = client.post("/api/shorten", json={"url": "ftp://example.com"})
        assert response.status_code == 400

    def test_missing_field(self, client):
        assert client.post("/api/shorten", json={}).status_code == 422


class TestBatchShorten:

    def test_batch(self, client):
        response = client.post("/api/shorten/batch", json=[
            {"correlation_id": "1", "original_url": "https://a.example.com"},
            {"correlation_id": "2", "original_url": "https://b.example.com"},
        ])

        assert response.status_code == 201
        body = response.json()
        assert [item["correlation_id"] for item in body] == ["1", "2"]
        assert all(item["short_url"].startswith(f"{BASE_URL}/") for item in body)

    def test_batch_reuses_existing(self, client):
        single = client.post("/api/shorten", json={"url": "https://a.example.com"}).json()["result"]

        response = client.post("/api/shorten/batch", json=[
            {"correlation_id": "1", "original_url": "https://a.example.com"},
        ])

        assert response.status_code == 201
        assert response.json() == [{"correlation_id": "1", "short_url": single}]

    def test_empty_batch(self, client):
        assert client.post("/api/shorten/batch", json=[]).status_code == 400


class TestAuth:

    def test_post_issues_token(self, client):
        response = client.post("/", content="https://example.com")

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("auth_token=")
        assert "HttpOnly" in cookie
        assert "Secure" in cookie
        assert "samesite=strict" in cookie.lower()
        assert token_from(response)

    def test_valid_token_is_not_reissued(self, client):
        token = issue_token("user-1", JWT_SECRET)

        response = client.post("/", content="https://example.com", headers=bearer(token))

        assert "set-cookie" not in response.headers

    def test_cookie_token_is_accepted(self, client):
        created = client.post("/", content="https://example.com")
        token = token_from(created)

        response = client.get("/api/user/urls", headers={"Cookie": f"auth_token={token}"})

        assert response.status_code == 200

    def test_invalid_token_is_rejected(self, client):
        assert client.get("/api/user/urls", headers=bearer("garbage")).status_code == 401

    def test_get_does_not_issue_token(self, client):
        response = client.get("/abcde", follow_redirects=False)
        assert "set-cookie" not in response.headers


class TestUserURLs:

    def test_requires_token(self, client):
        assert client.get("/api/user/urls").status_code == 401

    def test_no_content(self, client):
        token = issue_token("user-without-urls", JWT_SECRET)
        assert client.get("/api/user/urls", headers=bearer(token)).status_code == 204

    def test_lists_own_urls_only(self, client):
        mine = client.post("/", content="https://mine.example.com")
        client.post("/", content="https://theirs.example.com")

        response = client.get("/api/user/urls", headers=bearer(token_from(mine)))

        assert response.status_code == 200
        assert response.json() == [
            {"short_url": mine.text, "original_url": "https://mine.example.com"}
        ]

    def test_delete_then_gone(self, client):
        created = client.post("/", content="https://example.com")
        token = token_from(created)
        short_key = key_of(created.text)

        response = client.request(
            "DELETE", "/api/user/urls", json=[short_key], headers=bearer(token)
        )

        assert response.status_code == 202
        assert client.get(f"/{short_key}", follow_redirects=False).status_code == 410
        assert client.get("/api/user/urls", headers=bearer(token)).status_code == 204

    def test_delete_of_foreign_key_is_ignored(self, client):
        created = client.post("/", content="https://example.com")
        intruder = issue_token("intruder", JWT_SECRET)

        response = client.request(
            "DELETE", "/api/user/urls", json=[key_of(created.text)], headers=bearer(intruder)
        )

        assert response.status_code == 202
        assert client.get(f"/{key_of(created.text)}", follow_redirects=False).status_code == 307

    def test_delete_requires_token(self, client):
        response = client.request("DELETE", "/api/user/urls", json=["abcde"])
        assert response.status_code == 401

    def test_delete_empty_list(self, client):
        token = issue_token("user-1", JWT_SECRET)
        response = client.request("DELETE", "/api/user/urls", json=[], headers=bearer(token))
        assert response.status_code == 400


class TestGzip:

    def test_gzip_request_body(self, client):
        body = gzip.compress(json.dumps({"url": "https://example.com"}).encode())

        response = client.post(
            "/api/shorten",
            content=body,
            headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
        )

        assert response.status_code == 201

    def test_gzip_text_body(self, client):
        response = client.post(
            "/",
            content=gzip.compress(b"https://example.com"),
            headers={"Content-Encoding": "gzip"},
        )

        assert response.status_code == 201

    def test_corrupt_gzip_body(self, client):
        response = client.post(
            "/api/shorten",
            content=b"definitely not gzip",
            headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
        )

        assert response.status_code == 400

    def test_large_response_is_compressed(self, client):
        items = [
            {"correlation_id": str(i), "original_url": f"https://site{i}.example.com/page"}
            for i in range(30)
        ]

        response = client.post(
            "/api/shorten/batch", json=items, headers={"Accept-Encoding": "gzip"}
        )

        assert response.status_code == 201
        assert response.headers["content-encoding"] == "gzip"
        assert len(response.json()) == 30


class TestPing:

    def test_ping(self, client):
        response = client.get("/ping")

        assert response.status_code == 200
        assert "X-Process-Time" in response.headers

    def test_ping_storage_down(self, client, monkeypatch):
        async def down():
            raise StorageUnavailableError("disk gone")

        monkeypatch.setattr(client.app.state.repository, "health_check", down)

        assert client.get("/ping").status_code == 500


@pytest.mark.parametrize("strategy", [StorageStrategy.file, StorageStrategy.database])
def test_persistent_strategies(strategy, tmp_path, app_settings):
    overrides = {"STORAGE_STRATEGY": strategy}
    if strategy is StorageStrategy.file:
        overrides["FILE_STORAGE_PATH"] = str(tmp_path / "urls.jsonl")
    else:
        overrides["DATABASE_DSN"] = f"sqlite:///{tmp_path / 'urls.db'}"

    settings = app_settings.model_copy(update=overrides)

    with TestClient(create_app(settings)) as client:
        created = client.post("/", content="https://example.com")
        assert created.status_code == 201
        assert client.get("/ping").status_code == 200

    with TestClient(create_app(settings)) as client:
        again = client.post("/", content="https://example.com")
        assert again.status_code == 409
        assert again.text == created.text
