"""
FakeSO Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Every service test runs against a real (in-memory SQLite) database
       so the ORM mappings, JSON columns and relationships are exercised.
How:   A fresh engine per test; tables are created from model metadata.

Fixture Hierarchy (all function-scoped):
    test_engine
    ├── db_session:    one AsyncSession, the way a single request sees it
    └── test_client:   HTTPX AsyncClient, one session per request like production

    Factories (async callables, built on db_session):
    ├── make_user
    └── make_question
"""

import os

# Override settings BEFORE any fakeso import reads them
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BCRYPT_ROUNDS"] = "4"

from datetime import datetime, timezone
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fakeso.database import Base, get_db_session
from fakeso.models.question import Question
from fakeso.models.user import User
from fakeso.schemas.question import TagInput
from fakeso.services.tag_service import tag_service
from fakeso.services.user_service import hash_password


def utc(day: int, hour: int = 12) -> datetime:
    """A fixed November 2024 timestamp, handy for ordering tests."""
    return datetime(2024, 11, day, hour, 0, tzinfo=timezone.utc)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_engine():
    """
    In-memory SQLite engine shared by every connection of one test.

    StaticPool keeps a single connection alive, otherwise each new
    connection would see its own empty in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """
    A single session for service-level tests.

    Services only flush; the test can inspect pending state directly.
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession for failure-injection tests.

    Usage:
        mock_db_session.execute = AsyncMock(side_effect=RuntimeError("boom"))
        with pytest.raises(DatabaseError):
            await service.method(mock_db_session, ...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    get_db_session is overridden so every request gets its own session
    on the test engine and commits (or rolls back) exactly as in production.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from fakeso.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def make_user(db_session):
    """
    Insert a user directly, bypassing validation.

    Usage:
        joe = await make_user("joe", friends=["mike"])
    """
    async def _make(
        username: str,
        password: str = "secret-pass",
        friends: Optional[List[str]] = None,
    ) -> User:
        user = User(
            username=username,
            password_hash=hash_password(password),
            name=username.title(),
            email=f"{username}@example.com",
            pronouns="they/them",
            image="",
            friends=list(friends or []),
            notifications=[],
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make


@pytest_asyncio.fixture
async def make_question(db_session):
    """
    Insert a question directly with the given tag names.

    Usage:
        q = await make_question("How to X", tags=["react"], asked_by="joe")
    """
    async def _make(
        title: str,
        text: str = "Question body",
        tags: Optional[List[str]] = None,
        asked_by: str = "joe",
        ask_date_time: Optional[datetime] = None,
        public: bool = True,
    ) -> Question:
        question = Question(
            title=title,
            text=text,
            asked_by=asked_by,
            ask_date_time=ask_date_time or utc(1),
            public=public,
            views=[],
            up_votes=[],
            down_votes=[],
        )
        question.tags = await tag_service.process_tags(
            db_session, [TagInput(name=name) for name in (tags or [])]
        )
        question.answers = []
        question.comments = []
        db_session.add(question)
        await db_session.flush()
        return question

    return _make
