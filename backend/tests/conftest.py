import os

# Set test environment
os.environ["DEBUG"] = "true"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["DATABASE_AUTO_CREATE"] = "false"

from collections.abc import AsyncGenerator
from datetime import timedelta
from typing import Any
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from roster.database import Base, create_tables, get_db
from roster.main import app
from roster.models import User
from roster.services.session_store import SessionStore

# In-memory SQLite by default; point TEST_DATABASE_URL at PostgreSQL to run against it
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create async engine with a fresh schema for each test."""
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(
            TEST_DATABASE_URL,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_async_engine(TEST_DATABASE_URL, echo=False)

    await create_tables(engine)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database session override."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def session_store(db_session: AsyncSession) -> SessionStore:
    return SessionStore(db_session, ttl=timedelta(hours=1))


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user with unique identifiers."""
    unique_id = uuid4()
    user = User(
        provider_subject_id=f"test-user-{unique_id}",
        email=f"test-{unique_id}@example.com",
        display_name="Test User",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def session_token(db_session: AsyncSession, session_store: SessionStore, test_user: User) -> str:
    token = await session_store.issue(test_user)
    await db_session.commit()
    return token


@pytest.fixture
def auth_headers(session_token: str) -> dict[str, str]:
    """Create authorization headers for authenticated requests."""
    return {"Authorization": f"Bearer {session_token}"}


@pytest.fixture
def sample_student_data() -> dict[str, Any]:
    """Sample payload for creating a student."""
    return {
        "name": "Omar",
        "email": "omar@ensat.ac.ma",
        "major": "GI",
    }


@pytest.fixture
def sample_assertion() -> dict[str, Any]:
    """Sample identity assertion as sent by the client after Google sign-in."""
    return {
        "displayName": "Amal",
        "email": "amal@ensat.ac.ma",
        "providerSubjectId": "g-123",
    }
