"""Generic read-write repositories.

Mutations only stage work in the session's unit of work; nothing is
committed until ``save``. Changes flushed early, by autoflush or an explicit
``flush()``, still count towards the number ``save`` returns. ``save`` then
empties the identity map so the next unit of work starts untracked.
"""

from __future__ import annotations

from contextlib import AbstractContextManager, nullcontext
from typing import Any, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from sqlrepo_infra.db.audit import AuditTracker
from sqlrepo_infra.db.repositories.read_only import (
    AsyncSqlAlchemyReadOnlyRepository,
    SqlAlchemyReadOnlyRepository,
)
from sqlrepo_infra.db.tracking import (
    ChangeCounter,
    count_pending_changes,
    identity_of,
    is_pending,
    mark_all_modified,
    prepare_attach,
)

logger = structlog.get_logger()

T = TypeVar("T")


class SqlAlchemyRepository(SqlAlchemyReadOnlyRepository):
    """Create, update, upsert, delete and save over a blocking session."""

    def __init__(
        self,
        session: Session,
        audit: bool = True,
        match_tracked_only: bool = False,
    ) -> None:
        """Initialize with a session and attach its audit tracker.

        With match_tracked_only, upsert treats an entity as existing only
        when this session already tracks that very instance.
        """
        super().__init__(session)
        self._tracker = AuditTracker.for_session(session, enabled=audit)
        self._counter = ChangeCounter.for_session(session)
        self._match_tracked_only = match_tracked_only
        self.reset_username()

    @property
    def username(self) -> str:
        """Actor attributed to changes on the next save."""
        return self._tracker.username

    @property
    def pending_changes(self) -> int:
        """Number of changes the next save would report."""
        return self._counter.count + count_pending_changes(self._session)

    def set_username(self, username: str) -> None:
        """Attribute subsequent saves to username."""
        self._tracker.configure_username(username)
        logger.debug("repository_username_set", username=username)

    def reset_username(self) -> None:
        """Clear the acting username."""
        self._tracker.configure_username("")

    def create(self, *entities: Any) -> None:
        """Stage entities for insertion."""
        self._session.add_all(entities)

    def update(self, *entities: Any) -> None:
        """Stage entities as modified in every column.

        The whole row is rewritten. A never-loaded instance writes its
        unset columns as their scalar default, or NULL when there is none.
        """
        for entity in entities:
            self._attach_modified(entity)

    def upsert(self, *entities: Any, is_update: bool | None = None) -> None:
        """Update entities that exist, create the rest.

        is_update=True skips the existence check and always updates.
        """
        for entity in entities:
            if is_update or self._exists(entity):
                self._attach_modified(entity)
            else:
                self._session.add(entity)

    def delete_by_id(self, entity: type[T], *ids: Any) -> bool:
        """Stage the row with the given key for removal; False if there is none."""
        found = self.get_by_id(entity, *ids)
        if found is None:
            logger.debug("entity_delete_missing", entity=entity.__name__, ids=ids)
        return self.delete(found)

    def delete(self, entity: Any) -> bool:
        """Stage entity for removal, attaching it first if needed."""
        if entity is None:
            return False
        if is_pending(entity):
            self._session.expunge(entity)
            return True
        existing = prepare_attach(self._session, entity)
        if existing is None:
            self._session.add(entity)
            existing = entity
        self._session.delete(existing)
        return True

    def save(self, actor: str | None = None) -> int:
        """Commit staged changes and clear tracking.

        Returns the number of inserted, updated and deleted entities. When
        actor is given, it is attributed to this save only.
        """
        with self._acting(actor):
            self._session.flush()
            self._session.commit()
        count = self._counter.take()
        self._session.expunge_all()
        logger.info("repository_saved", count=count, username=actor or self.username)
        return count

    def _acting(self, actor: str | None) -> AbstractContextManager[None]:
        if actor is None:
            return nullcontext()
        return self._tracker.acting_as(actor)

    def _attach_modified(self, entity: Any) -> None:
        existing = prepare_attach(self._session, entity)
        if existing is None:
            self._session.add(entity)
            target = entity
        else:
            target = self._session.merge(entity)
        mark_all_modified(target)

    def _exists(self, entity: Any) -> bool:
        if entity in self._session:
            return True
        if self._match_tracked_only:
            return False
        key = identity_of(entity)
        return key is not None and self._session.get(type(entity), key) is not None


class AsyncSqlAlchemyRepository(AsyncSqlAlchemyReadOnlyRepository):
    """Create, update, upsert, delete and save over an asyncio session."""

    def __init__(
        self,
        session: AsyncSession,
        audit: bool = True,
        match_tracked_only: bool = False,
    ) -> None:
        """Initialize with an async session and attach its audit tracker."""
        super().__init__(session)
        self._tracker = AuditTracker.for_session(session, enabled=audit)
        self._counter = ChangeCounter.for_session(session)
        self._match_tracked_only = match_tracked_only
        self.reset_username()

    @property
    def username(self) -> str:
        """Actor attributed to changes on the next save."""
        return self._tracker.username

    @property
    def pending_changes(self) -> int:
        """Number of changes the next save would report."""
        return self._counter.count + count_pending_changes(self._session)

    def set_username(self, username: str) -> None:
        """Attribute subsequent saves to username."""
        self._tracker.configure_username(username)
        logger.debug("repository_username_set", username=username)

    def reset_username(self) -> None:
        """Clear the acting username."""
        self._tracker.configure_username("")

    async def create(self, *entities: Any) -> None:
        """Stage entities for insertion."""
        self._session.add_all(entities)

    async def update(self, *entities: Any) -> None:
        """Stage entities as modified in every column."""
        for entity in entities:
            await self._attach_modified(entity)

    async def upsert(self, *entities: Any, is_update: bool | None = None) -> None:
        """Update entities that exist, create the rest."""
        for entity in entities:
            if is_update or await self._exists(entity):
                await self._attach_modified(entity)
            else:
                self._session.add(entity)

    async def delete_by_id(self, entity: type[T], *ids: Any) -> bool:
        """Stage the row with the given key for removal; False if there is none."""
        found = await self.get_by_id(entity, *ids)
        if found is None:
            logger.debug("entity_delete_missing", entity=entity.__name__, ids=ids)
        return await self.delete(found)

    async def delete(self, entity: Any) -> bool:
        """Stage entity for removal, attaching it first if needed."""
        if entity is None:
            return False
        if is_pending(entity):
            self._session.expunge(entity)
            return True
        existing = prepare_attach(self._session, entity)
        if existing is None:
            self._session.add(entity)
            existing = entity
        await self._session.delete(existing)
        return True

    async def save(self, actor: str | None = None) -> int:
        """Commit staged changes and clear tracking; see SqlAlchemyRepository.save."""
        with self._acting(actor):
            await self._session.flush()
            await self._session.commit()
        count = self._counter.take()
        self._session.expunge_all()
        logger.info("repository_saved", count=count, username=actor or self.username)
        return count

    def _acting(self, actor: str | None) -> AbstractContextManager[None]:
        if actor is None:
            return nullcontext()
        return self._tracker.acting_as(actor)

    async def _attach_modified(self, entity: Any) -> None:
        existing = prepare_attach(self._session, entity)
        if existing is None:
            self._session.add(entity)
            target = entity
        else:
            target = await self._session.merge(entity)
        mark_all_modified(target)

    async def _exists(self, entity: Any) -> bool:
        if entity in self._session:
            return True
        if self._match_tracked_only:
            return False
        key = identity_of(entity)
        return key is not None and await self._session.get(type(entity), key) is not None
