"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Generator
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import Engine, create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from sqlrepo_infra.db.session import (
    create_session_factory,
    create_sync_session_factory,
    init_db,
    init_db_sync,
)
from tests.mocks import mock_models  # noqa: F401  registers test tables on Base.metadata
from tests.mocks.mock_factories import make_library, make_memberships
from tests.mocks.mock_settings import make_settings


@pytest.fixture
def mock_settings() -> MagicMock:
    """Return a MagicMock Settings with sensible defaults."""
    return make_settings()


@pytest.fixture
def sync_engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine sharing one connection, tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db_sync(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sync_session(sync_engine: Engine) -> Generator[Session, None, None]:
    """Create an empty blocking session."""
    factory = create_sync_session_factory(sync_engine)
    with factory() as sess:
        yield sess


@pytest.fixture
def seeded_session(sync_session: Session) -> Session:
    """Blocking session over the seeded library, with nothing tracked."""
    sync_session.add_all(make_library())
    sync_session.add_all(make_memberships())
    sync_session.commit()
    sync_session.expunge_all()
    return sync_session


@pytest_asyncio.fixture
async def session() -> AsyncGenerator[AsyncSession, None]:
    """Create an in-memory SQLite async session for testing."""
    engine = create_async_engine("sqlite+aiosqlite://", echo=False)
    await init_db(engine)
    factory = create_session_factory(engine)
    async with factory() as sess:
        yield sess
    await engine.dispose()


@pytest_asyncio.fixture
async def seeded_async_session(session: AsyncSession) -> AsyncSession:
    """Async session over the seeded library, with nothing tracked."""
    session.add_all(make_library())
    session.add_all(make_memberships())
    await session.commit()
    session.expunge_all()
    return session
