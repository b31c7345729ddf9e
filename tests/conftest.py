"""
Pytest configuration for the Sprint Prioritization Survey.

Provides fixtures for:
- An in-memory SQLite database per test
- Sessions and an HTTP client wired to that database
- Sample submit payloads
"""

from __future__ import annotations

import copy
import os
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Callable, Dict

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from sprint_survey.database import get_db
from sprint_survey.main import app
from sprint_survey.models.base import Base
from sprint_survey.models.submission import Submission  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed receipt instant so derived timestamps are predictable
NOW = datetime(2025, 3, 10, 12, 0, 0, tzinfo=timezone.utc)
NOW_ISO = "2025-03-10T12:00:00.000Z"

BASE_PAYLOAD: Dict[str, Any] = {
    "email": "dev@example.com",
    "timestamp": NOW_ISO,
    "selectedItems": [
        {"id": "question1", "title": "Feedback pointers in report", "estimatedHours": 8, "priority": "high"},
        {"id": "question2", "title": "Pending acknowledgment button", "estimatedHours": 12, "priority": "high"},
        {"id": "question3", "title": "Automatic communication emails", "estimatedHours": None, "priority": "medium"},
    ],
    "priorityBreakdown": {"high": 2, "medium": 1, "low": 0},
    "responses": {"email": "dev@example.com", "question1_priority": "high"},
    "sprintNumber": 23,
    "formVersion": "v2.0-with-priority",
    "metadata": {"userAgent": "pytest"},
}


@pytest.fixture
def make_payload() -> Callable[..., Dict[str, Any]]:
    """Return a factory producing a fresh sample payload with overrides applied."""

    def _make(**overrides: Any) -> Dict[str, Any]:
        payload = copy.deepcopy(BASE_PAYLOAD)
        payload.update(overrides)
        return payload

    return _make


@pytest_asyncio.fixture
async def db_engine():
    """Engine over a private in-memory database with the schema created."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get a session on the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def now_iso() -> str:
    return NOW_ISO
