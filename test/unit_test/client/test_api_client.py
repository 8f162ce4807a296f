"""Unit tests for the synchronous API client.

Every test drives the client through ``httpx.MockTransport``.
"""

import json
from typing import Callable, List

import httpx
import pytest

from ngurra_pathways.client import ApiClientError, NgurraApiClient, TokenStore

BASE_URL = "http://mock-api"


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> NgurraApiClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return NgurraApiClient(BASE_URL, token_store=TokenStore(use_timer=False), client=http)


def _auth_body(access: str, refresh: str = "refresh-1"):
    return {"access_token": access, "refresh_token": refresh, "token_type": "bearer", "user": {"id": "u1"}}


class TestAuth:
    def test_login_stores_tokens_and_sends_bearer(self):
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path == "/api/v1/auth/login":
                return httpx.Response(200, json=_auth_body("access-1"))
            return httpx.Response(200, json={"id": "u1"})

        client = _client(handler)
        client.login("ada@example.com", "secret-password")
        assert client.me() == {"id": "u1"}

        assert json.loads(seen[0].content) == {"email": "ada@example.com", "password": "secret-password"}
        assert "authorization" not in seen[0].headers
        assert seen[1].headers["authorization"] == "Bearer access-1"

    def test_refresh_and_retry_on_401(self):
        calls: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(f"{request.method} {request.url.path} {request.headers.get('authorization')}")
            if request.url.path == "/api/v1/auth/refresh":
                assert json.loads(request.content) == {"refresh_token": "refresh-1"}
                return httpx.Response(200, json=_auth_body("access-2", "refresh-2"))
            if request.headers.get("authorization") == "Bearer access-1":
                return httpx.Response(401, json={"detail": "Token expired"})
            return httpx.Response(200, json=[])

        client = _client(handler)
        client.tokens.set_tokens("access-1", "refresh-1")

        assert client.list_conversations() == []
        assert calls == [
            "GET /api/v1/messages/conversations Bearer access-1",
            "POST /api/v1/auth/refresh None",
            "GET /api/v1/messages/conversations Bearer access-2",
        ]
        assert client.tokens.get_refresh_token() == "refresh-2"

    def test_failed_refresh_clears_session(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"detail": "Invalid session"})

        client = _client(handler)
        client.tokens.set_tokens("access-1", "refresh-1")

        with pytest.raises(ApiClientError) as exc_info:
            client.me()
        assert exc_info.value.status_code == 401
        assert client.tokens.is_authenticated() is False

    def test_401_without_refresh_token_is_raised(self):
        client = _client(lambda request: httpx.Response(401, json={"detail": "Not authenticated"}))
        with pytest.raises(ApiClientError, match="Not authenticated"):
            client.me()

    def test_refresh_without_token(self):
        client = _client(lambda request: httpx.Response(200, json={}))
        with pytest.raises(ApiClientError):
            client.refresh()

    def test_logout_always_clears_tokens(self):
        client = _client(lambda request: httpx.Response(500, text="boom"))
        client.tokens.set_tokens("access-1", "refresh-1")
        with pytest.raises(ApiClientError):
            client.logout()
        assert client.tokens.get_refresh_token() is None


class TestRequests:
    def test_list_jobs_drops_empty_filters(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert dict(request.url.params) == {"page": "2", "limit": "5", "q": "ranger"}
            return httpx.Response(200, json={"data": [], "pagination": {}})

        with _client(handler) as client:
            assert client.list_jobs(page=2, limit=5, q="ranger", location=None)["data"] == []

    def test_start_conversation_payload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content) == {
                "participant_ids": ["u2"],
                "type": "direct",
                "name": None,
                "initial_message": "Hi",
            }
            return httpx.Response(201, json={"conversation": {"id": "c1"}, "is_existing": False})

        client = _client(handler)
        assert client.start_conversation(["u2"], "Hi")["conversation"]["id"] == "c1"

    def test_no_content_returns_none(self):
        client = _client(lambda request: httpx.Response(204))
        client.tokens.set_tokens("access-1")
        assert client._request("DELETE", "/feed/posts/p1") is None

    def test_error_detail_and_payload(self):
        client = _client(lambda request: httpx.Response(429, json={"detail": "Slow down", "retry_after": 30}))
        with pytest.raises(ApiClientError) as exc_info:
            client.get_feed()
        assert exc_info.value.detail == "Slow down"
        assert exc_info.value.payload["retry_after"] == 30

    def test_non_json_error(self):
        client = _client(lambda request: httpx.Response(502, text="Bad gateway"))
        with pytest.raises(ApiClientError) as exc_info:
            client.send_message("c1", "hello")
        assert exc_info.value.detail == "Bad gateway"
        assert exc_info.value.payload is None
