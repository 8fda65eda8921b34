"""Shared test fixtures for the Estate Match API test suite."""

import uuid
from collections.abc import AsyncGenerator, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from app.auth.dependencies import get_current_user
from app.core.database import Base, get_db, get_readonly_db
from app.main import app
from app.models.enums import UserRole
from app.schemas.auth import CurrentUser


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


# ── Databases ─────────────────────────────────────────────────────────────────


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Fresh in-memory SQLite per test; StaticPool shares the one connection."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield test_engine
    finally:
        await test_engine.dispose()


@pytest.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def sync_session() -> Generator[Session]:
    """Sync SQLite session for the Celery-side repository."""
    sync_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(sync_engine)
    session = Session(sync_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()
        sync_engine.dispose()


# ── Sample identity ───────────────────────────────────────────────────────────

SAMPLE_ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
SAMPLE_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
OTHER_ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000099")


@pytest.fixture
def sample_current_user() -> CurrentUser:
    return CurrentUser(
        user_id=SAMPLE_USER_ID,
        org_id=SAMPLE_ORG_ID,
        role=UserRole.ADMIN,
    )


@pytest.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient]:
    """Unauthenticated client; identity must come from gateway headers."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_readonly_db] = lambda: db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.pop(get_db, None)
    app.dependency_overrides.pop(get_readonly_db, None)


@pytest.fixture
async def authenticated_client(
    client: AsyncClient, sample_current_user: CurrentUser
) -> AsyncGenerator[AsyncClient]:
    app.dependency_overrides[get_current_user] = lambda: sample_current_user
    yield client
    app.dependency_overrides.pop(get_current_user, None)
