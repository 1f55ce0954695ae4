"""Shared fixtures: temporary SQLite databases and app clients."""

import asyncio
from typing import Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from linksite.app.admin_cli import promote_user_by_email
from linksite.app.db.async_session import get_db
from linksite.app.db.base import Base
from linksite.app.main import create_app
from linksite.app.middleware.rate_limit import API_BUCKET, AUTH_BUCKET, BucketPolicy, RateLimiter

DEFAULT_PASSWORD = "correct-horse-battery"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_policies(
    auth_max: int = 5,
    auth_window: int = 3600,
    api_max: int = 30,
    api_window: int = 60,
) -> dict[str, BucketPolicy]:
    return {
        AUTH_BUCKET: BucketPolicy(AUTH_BUCKET, auth_max, auth_window),
        API_BUCKET: BucketPolicy(API_BUCKET, api_max, api_window),
    }


def _sqlite_url_from_absolute_path(path: str) -> str:
    # SQLAlchemy expects 4 slashes for absolute paths. The path already starts
    # with '/', so strip it when appending after '////'.
    return f"sqlite+aiosqlite:////{path.lstrip('/')}"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db_url(tmp_path) -> str:
    return _sqlite_url_from_absolute_path(str(tmp_path / "linksite_test.db"))


@pytest.fixture
def session_maker(db_url):
    # Requests, fixtures and helpers run on different event loops; never
    # hand a pooled connection from one loop to another.
    engine = create_async_engine(db_url, poolclass=NullPool)

    async def init_db() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(init_db())

    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)

    asyncio.run(engine.dispose())


@pytest.fixture
def make_client(session_maker) -> Callable[..., TestClient]:
    """Build a TestClient around a fresh app using the temporary database.

    The default limiter is generous so tests that are not about throttling
    can register several accounts from one client.
    """

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    def _make(limiter: RateLimiter | None = None) -> TestClient:
        app = create_app(
            rate_limiter=limiter or RateLimiter(make_policies(auth_max=1000, api_max=1000)),
            manage_database=False,
        )
        app.dependency_overrides[get_db] = override_get_db
        return TestClient(app, raise_server_exceptions=False)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()


@pytest.fixture
def promote(session_maker) -> Callable[[str], str]:
    """Grant the admin role directly in the database."""

    def _promote(email: str) -> str:
        async def run() -> str:
            async with session_maker() as session:
                result = await promote_user_by_email(session, email)
                await session.commit()
            return result.value

        return asyncio.run(run())

    return _promote


def register(
    client: TestClient,
    username: str,
    email: str | None = None,
    password: str = DEFAULT_PASSWORD,
    headers: dict | None = None,
):
    return client.post(
        "/api/auth/register",
        json={
            "username": username,
            "email": email or f"{username.lower()}@example.com",
            "password": password,
        },
        headers=headers or {},
    )


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
