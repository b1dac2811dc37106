"""Pytest fixtures for testing."""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BOOTSTRAP_TOKEN", "test-bootstrap-token")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from src.core.database import get_db  # noqa: E402
from src.core.security import generate_secret  # noqa: E402
from src.main import app  # noqa: E402
from src.models import ApiKey, Base  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture()
def bootstrap_headers() -> dict[str, str]:
    return {"X-Bootstrap-Token": os.environ["BOOTSTRAP_TOKEN"]}


@pytest_asyncio.fixture(scope="function")
async def db() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session on a fresh in-memory SQLite database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database dependency override.

    Args:
        db: Test database session

    Yields:
        AsyncClient configured for testing
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def create_api_key(
    db: AsyncSession,
    *,
    user_id: int = 1,
    name: str = "test-key",
    days: int = 30,
    active: bool = True,
    expires_at: datetime | None = None,
) -> ApiKey:
    """Insert a key directly, bypassing the service."""
    key = ApiKey(
        key=generate_secret(),
        name=name,
        user_id=user_id,
        expires_at=expires_at or datetime.now(UTC) + timedelta(days=days),
        active=active,
    )
    db.add(key)
    await db.commit()
    await db.refresh(key)
    return key


def auth_headers(key: ApiKey) -> dict[str, str]:
    return {"Authorization": f"Bearer {key.key}"}


@pytest_asyncio.fixture()
async def test_key(db: AsyncSession) -> ApiKey:
    """Valid key owned by user 1."""
    return await create_api_key(db, user_id=1, name="owner-one")


@pytest_asyncio.fixture()
async def second_key(db: AsyncSession) -> ApiKey:
    """Another valid key owned by user 1."""
    return await create_api_key(db, user_id=1, name="owner-one-backup")


@pytest_asyncio.fixture()
async def other_owner_key(db: AsyncSession) -> ApiKey:
    """Valid key owned by user 2."""
    return await create_api_key(db, user_id=2, name="owner-two")


@pytest_asyncio.fixture()
async def expired_key(db: AsyncSession) -> ApiKey:
    return await create_api_key(
        db,
        user_id=1,
        name="expired",
        expires_at=datetime.now(UTC) - timedelta(days=1),
    )


@pytest_asyncio.fixture()
async def disabled_key(db: AsyncSession) -> ApiKey:
    return await create_api_key(db, user_id=1, name="disabled", active=False)
