"""
Haiku Notes Backend: Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   The application runs against in-memory SQLite (aiosqlite) through the
       same Database class production uses; ASGITransport drives it without
       a server. Unit tests of the services use a mocked AsyncSession.

Fixture Hierarchy:
    settings ─┬─ app ── test_client
              └─ database ── db_session

    mock_db_session:  AsyncMock standing in for AsyncSession
    user_id / other_user_id / note_id:  well-formed identifiers
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from haiku_notes.config import APISettings, DatabaseSettings, Settings
from haiku_notes.database import Database
from haiku_notes.identifiers import NoteId, UserId, generate_id
from haiku_notes.main import create_app

# Registers both tables on Base.metadata
from haiku_notes.models.note import Note  # noqa: F401
from haiku_notes.models.user import User  # noqa: F401


def make_settings(**overrides) -> Settings:
    """Settings for an in-memory SQLite database; keyword args override fields."""
    api = overrides.pop("api", None) or APISettings(read_timeout=5.0, write_timeout=5.0)
    db = DatabaseSettings(
        database="test",
        user="test",
        password="test",
        url="sqlite+aiosqlite://",
    )
    return Settings(api=api, db=db, log_level="WARNING", **overrides)


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings_factory():
    """Builds Settings variants, e.g. settings_factory(owner_scoped_note_reads=False)."""
    return make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest_asyncio.fixture
async def app(settings):
    """A fully built application with its tables created."""
    application = create_app(settings)
    await application.state.database.create_all()
    yield application
    await application.state.database.dispose()


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the app.

    Usage:
        async def test_ping(test_client):
            response = await test_client.get("/ping")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def created_user_id(test_client) -> UserId:
    """Id of a user created through POST /user."""
    response = await test_client.post("/user")
    assert response.status_code == 201
    return UserId(response.json()["id"])


# ══════════════════════════════════════════════════════════════════════════
# Store Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings.db)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_note(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = note
            result = await note_service.get_note(mock_db_session, user_id, note_id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Identifiers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def user_id() -> UserId:
    return UserId(generate_id())


@pytest.fixture
def other_user_id() -> UserId:
    return UserId(generate_id())


@pytest.fixture
def note_id() -> NoteId:
    return NoteId(generate_id())
