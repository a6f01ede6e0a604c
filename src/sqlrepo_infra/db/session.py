"""Session factories and database initialization.

Sessions never autoflush: staged changes reach the database only when a
repository saves.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy import Engine, MetaData
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import Session, sessionmaker

from sqlrepo_infra.db.models import Base


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the given engine."""
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


def create_sync_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create a blocking session factory bound to the given engine."""
    return sessionmaker(engine, class_=Session, expire_on_commit=False, autoflush=False)


async def init_db(engine: AsyncEngine, *metadata: MetaData) -> None:
    """Create the audit tables plus any caller metadata. Use Alembic for Postgres."""
    async with engine.begin() as conn:
        for meta in (Base.metadata, *metadata):
            await conn.run_sync(meta.create_all)


def init_db_sync(engine: Engine, *metadata: MetaData) -> None:
    """Blocking variant of init_db."""
    with engine.begin() as conn:
        for meta in (Base.metadata, *metadata):
            meta.create_all(conn)


async def get_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session and ensure it's closed."""
    async with session_factory() as session:
        yield session
