from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, List, Tuple
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.pool import StaticPool

from ngurra_pathways.core.database.utils import create_all

# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

RegisterFn = Callable[..., Awaitable[Tuple[Dict, Dict[str, str]]]]


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh database for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async_session_maker = sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session_maker() as session:  # type: ignore[attr-defined]
        yield session


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from ngurra_pathways.core.database.session import get_session
    from ngurra_pathways.server.main import app

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("ngurra_pathways.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(name="register")
async def register_fixture(client: AsyncClient) -> RegisterFn:
    """Factory registering an account through the API.

    Returns the user payload and the bearer headers of its session.
    """

    async def _register(email: str, user_type: str = "MEMBER", **extra) -> Tuple[Dict, Dict[str, str]]:
        payload = {"email": email, "password": "password123", "user_type": user_type, **extra}
        response = await client.post("/api/v1/auth/register", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['access_token']}"}

    return _register


@pytest_asyncio.fixture(name="admin")
async def admin_fixture(client: AsyncClient, session: AsyncSession, register: RegisterFn) -> Tuple[Dict, Dict[str, str]]:
    """An ADMIN account; registered as a member and promoted in the database."""
    from ngurra_pathways.core.database.entities.users import User

    user, headers = await register("admin@example.com")
    db_user = await session.get(User, user["id"])
    db_user.user_type = "ADMIN"
    session.add(db_user)
    await session.commit()
    user["user_type"] = "ADMIN"
    return user, headers


@pytest.fixture
def pushed_notifications(monkeypatch) -> List[Tuple[str, Dict[str, Any]]]:
    """Records ``notification:new`` pushes as (user_id, payload) instead of sending them."""
    from ngurra_pathways.server.services.realtime import manager

    pushed: List[Tuple[str, Dict[str, Any]]] = []

    async def send_to_user(user_id: str, event: str, data=None) -> int:
        if event == "notification:new":
            pushed.append((user_id, data))
        return 0

    monkeypatch.setattr(manager, "send_to_user", send_to_user)
    return pushed
