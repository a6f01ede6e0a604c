"""Factory functions wiring settings into repositories."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from sqlrepo_core.config.settings import Settings
from sqlrepo_infra.db.repositories.repository import (
    AsyncSqlAlchemyRepository,
    SqlAlchemyRepository,
)


def build_repository(session: Session, settings: Settings) -> SqlAlchemyRepository:
    """Create a blocking repository configured from settings."""
    return SqlAlchemyRepository(
        session,
        audit=settings.audit_enabled,
        match_tracked_only=settings.upsert_match_tracked_only,
    )


def build_async_repository(
    session: AsyncSession, settings: Settings
) -> AsyncSqlAlchemyRepository:
    """Create an asyncio repository configured from settings."""
    return AsyncSqlAlchemyRepository(
        session,
        audit=settings.audit_enabled,
        match_tracked_only=settings.upsert_match_tracked_only,
    )
