"""Ngurra Pathways API client

Overview
--------
Synchronous ``httpx`` client for the Ngurra Pathways REST API. Authentication
state lives in a :class:`~ngurra_pathways.client.token_store.TokenStore`:
``login`` and ``register`` fill it, every request sends the access token as a
Bearer header, and a ``401`` triggers one refresh-and-retry when a refresh
token is held.

Errors
------
Non-2xx responses raise :class:`ApiClientError` carrying the status code and
the server's ``detail`` message.

Usage
-----
>>> client = NgurraApiClient("http://localhost:8000")
>>> client.login("ada@example.com", "correct horse")
>>> jobs = client.list_jobs(q="ranger")
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from .token_store import TokenStore

API_PREFIX = "/api/v1"


class ApiClientError(Exception):
    """Error response from the API.

    Args:
        status_code: HTTP status code of the response.
        detail: ``detail`` field of the JSON error body, or the raw text.
        payload: Parsed JSON error body when available.
    """

    def __init__(self, status_code: int, detail: str, payload: Optional[Any] = None) -> None:
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.payload = payload


class NgurraApiClient:
    """Thin HTTP client over the v1 API."""

    def __init__(
        self,
        base_url: str,
        token_store: Optional[TokenStore] = None,
        client: Optional[httpx.Client] = None,
        *,
        timeout: float = 10.0,
    ) -> None:
        """Create an API client.

        Args:
            base_url: Server root, e.g. ``http://localhost:8000``.
            token_store: Where tokens are kept; a default 30 minute idle store otherwise.
            client: Preconfigured ``httpx.Client`` (tests pass one with a mock transport).
            timeout: Timeout of the internal client.
        """
        self.base_url = base_url.rstrip("/")
        self.tokens = token_store or TokenStore()
        self._client = client or httpx.Client(timeout=timeout)
        self._logger = logging.getLogger(__name__)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "NgurraApiClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.base_url}{API_PREFIX}{path}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self.tokens.get_access_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        return self._client.request(method, self._url(path), headers=self._headers(), **kwargs)

    def _request(self, method: str, path: str, *, retry_auth: bool = True, **kwargs: Any) -> Any:
        """Send a request, refreshing the session once on 401."""
        response = self._send(method, path, **kwargs)
        if response.status_code == 401 and retry_auth and self.tokens.get_refresh_token():
            self._logger.debug("Access token rejected; refreshing session")
            try:
                self.refresh()
            except ApiClientError:
                self.tokens.clear()
                raise
            response = self._send(method, path, **kwargs)
        return self._parse(response)

    @staticmethod
    def _parse(response: httpx.Response) -> Any:
        if response.is_success:
            if response.status_code == 204 or not response.content:
                return None
            return response.json()
        try:
            payload = response.json()
            detail = payload.get("detail", response.text) if isinstance(payload, dict) else response.text
        except ValueError:
            payload = None
            detail = response.text
        raise ApiClientError(response.status_code, str(detail), payload)

    def _store_auth(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.tokens.set_tokens(body["access_token"], body.get("refresh_token"))
        return body

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def register(self, email: str, password: str, user_type: str = "MEMBER", **profile: Any) -> Dict[str, Any]:
        body = {"email": email, "password": password, "user_type": user_type, **profile}
        return self._store_auth(self._request("POST", "/auth/register", json=body, retry_auth=False))

    def login(self, email: str, password: str) -> Dict[str, Any]:
        body = {"email": email, "password": password}
        return self._store_auth(self._request("POST", "/auth/login", json=body, retry_auth=False))

    def refresh(self) -> Dict[str, Any]:
        refresh_token = self.tokens.get_refresh_token()
        if not refresh_token:
            raise ApiClientError(401, "No refresh token available")
        response = self._client.post(self._url("/auth/refresh"), json={"refresh_token": refresh_token})
        return self._store_auth(self._parse(response))

    def logout(self) -> None:
        try:
            if self.tokens.get_access_token():
                self._request("POST", "/auth/logout", retry_auth=False)
        finally:
            self.tokens.clear()

    def me(self) -> Dict[str, Any]:
        return self._request("GET", "/auth/me")

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def list_jobs(self, page: int = 1, limit: int = 20, **filters: Any) -> Dict[str, Any]:
        params = {"page": page, "limit": limit}
        params.update({k: v for k, v in filters.items() if v is not None})
        return self._request("GET", "/jobs", params=params)

    def apply_to_job(
        self, job_id: str, cover_letter: Optional[str] = None, resume_url: Optional[str] = None
    ) -> Dict[str, Any]:
        body = {"job_id": job_id, "cover_letter": cover_letter, "resume_url": resume_url}
        return self._request("POST", "/applications", json=body)

    # ------------------------------------------------------------------
    # Messaging
    # ------------------------------------------------------------------

    def list_conversations(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/messages/conversations")

    def start_conversation(
        self,
        participant_ids: List[str],
        initial_message: Optional[str] = None,
        *,
        type: str = "direct",
        name: Optional[str] = None,
    ) -> Dict[str, Any]:
        body = {"participant_ids": participant_ids, "type": type, "name": name, "initial_message": initial_message}
        return self._request("POST", "/messages/conversations", json=body)

    def send_message(self, conversation_id: str, content: str, **extra: Any) -> Dict[str, Any]:
        body = {"content": content, **extra}
        return self._request("POST", f"/messages/conversations/{conversation_id}/messages", json=body)

    # ------------------------------------------------------------------
    # Feed
    # ------------------------------------------------------------------

    def get_feed(self, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        return self._request("GET", "/feed", params={"page": page, "limit": limit})
