"""
Unit tests for the domain and global exception handlers.

A throwaway FastAPI app raises each kind of error so the translation to JSON
responses can be checked without touching the database.
"""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from ngurra_pathways.core.errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PaymentProviderError,
    RateLimitError,
)
from ngurra_pathways.server.exception_handlers import setup_exception_handlers

pytestmark = pytest.mark.asyncio


def _build_app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/not-found")
    async def not_found():
        raise NotFoundError("Job")

    @app.get("/unauthorized")
    async def unauthorized():
        raise AuthenticationError()

    @app.get("/forbidden")
    async def forbidden():
        raise ForbiddenError("Upgrade required", extra={"redirect_to": "/pricing"})

    @app.get("/conflict")
    async def conflict():
        raise ConflictError("Already applied")

    @app.get("/rate-limited")
    async def rate_limited():
        raise RateLimitError("Slow down", retry_after=3600)

    @app.get("/payment")
    async def payment():
        raise PaymentProviderError()

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database exploded")

    return app


@pytest.fixture
async def handler_client():
    transport = ASGITransport(app=_build_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://localhost") as client:
        yield client


class TestDomainExceptionHandler:
    async def test_not_found(self, handler_client: AsyncClient):
        response = await handler_client.get("/not-found")
        assert response.status_code == 404
        assert response.json() == {"detail": "Job not found", "error_type": "NotFoundError"}

    async def test_default_message(self, handler_client: AsyncClient):
        response = await handler_client.get("/unauthorized")
        assert response.status_code == 401
        assert response.json()["detail"] == "Authentication required"

    async def test_extra_fields_are_merged(self, handler_client: AsyncClient):
        response = await handler_client.get("/forbidden")
        assert response.status_code == 403
        assert response.json()["redirect_to"] == "/pricing"

    async def test_conflict(self, handler_client: AsyncClient):
        response = await handler_client.get("/conflict")
        assert response.status_code == 409

    async def test_rate_limit_sets_retry_after(self, handler_client: AsyncClient):
        response = await handler_client.get("/rate-limited")
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "3600"
        assert response.json()["retry_after"] == 3600

    async def test_payment_provider_error_is_502(self, handler_client: AsyncClient):
        response = await handler_client.get("/payment")
        assert response.status_code == 502

    async def test_server_side_errors_are_reported(self, handler_client: AsyncClient):
        with patch("ngurra_pathways.server.exception_handlers.domain_handler.log_error") as log_error:
            await handler_client.get("/payment")
            await handler_client.get("/not-found")
        log_error.assert_called_once()
        error_type, _, context = log_error.call_args.args
        assert error_type == "PaymentProviderError"
        assert context == {"method": "GET", "path": "/payment"}


class TestGlobalExceptionHandler:
    async def test_unhandled_error_becomes_generic_500(self, handler_client: AsyncClient):
        response = await handler_client.get("/boom")
        assert response.status_code == 500
        data = response.json()
        assert data["detail"] == "Internal server error"
        assert data["error_type"] == "RuntimeError"
        assert len(data["error_id"]) == 32
        assert "database exploded" not in response.text

    async def test_unhandled_error_is_reported_with_error_id(self, handler_client: AsyncClient):
        with patch("ngurra_pathways.server.exception_handlers.global_handler.log_error") as log_error:
            response = await handler_client.get("/boom")
        log_error.assert_called_once_with(
            "RuntimeError",
            "database exploded",
            {"error_id": response.json()["error_id"], "method": "GET", "path": "/boom"},
        )
