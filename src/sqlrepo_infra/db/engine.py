"""Database engine factories."""

from __future__ import annotations

from sqlalchemy import Engine
from sqlalchemy import create_engine as create_sqlalchemy_engine
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from sqlrepo_core.config.settings import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Create an async SQLAlchemy engine based on settings."""
    if settings.db_backend == "sqlite":
        return create_async_engine(
            settings.database_url,
            echo=settings.echo_sql,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(
        settings.database_url,
        echo=settings.echo_sql,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )


def create_sync_engine(settings: Settings) -> Engine:
    """Create a blocking SQLAlchemy engine based on settings."""
    if settings.db_backend == "sqlite":
        return create_sqlalchemy_engine(
            settings.sync_database_url,
            echo=settings.echo_sql,
            connect_args={"check_same_thread": False},
        )
    return create_sqlalchemy_engine(
        settings.sync_database_url,
        echo=settings.echo_sql,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
    )
