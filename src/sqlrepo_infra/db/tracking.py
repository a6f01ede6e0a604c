"""Helpers that move entities between SQLAlchemy tracking states.

Shared by the blocking and asyncio repositories; none of them emit SQL.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import event, inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, make_transient_to_detached
from sqlalchemy.orm.attributes import flag_modified

from sqlrepo_core.exceptions import MissingPrimaryKeyError

if TYPE_CHECKING:
    from sqlalchemy.orm import UOWTransaction

_INFO_KEY = "sqlrepo.change_counter"


def _sync_session(session: Session | AsyncSession) -> Session:
    return session.sync_session if isinstance(session, AsyncSession) else session


class ChangeCounter:
    """Counts entities written by every flush since the last save.

    Autoflush and explicit flushes empty ``session.new``/``dirty``/``deleted``
    before save runs, so the count is accumulated at flush time instead.
    A rollback discards it along with the staged work.
    """

    def __init__(self) -> None:
        self.count = 0

    @classmethod
    def for_session(cls, session: Session | AsyncSession) -> ChangeCounter:
        """Return the session's counter, attaching a new one on first use."""
        sync_session = _sync_session(session)
        counter: ChangeCounter | None = sync_session.info.get(_INFO_KEY)
        if counter is None:
            counter = cls()
            event.listen(sync_session, "after_flush", counter._after_flush)
            event.listen(sync_session, "after_rollback", counter._after_rollback)
            sync_session.info[_INFO_KEY] = counter
        return counter

    def take(self) -> int:
        """Return the accumulated count and start again from zero."""
        count, self.count = self.count, 0
        return count

    def _after_flush(self, session: Session, flush_context: UOWTransaction) -> None:
        self.count += count_pending_changes(session)

    def _after_rollback(self, session: Session) -> None:
        self.count = 0


@contextmanager
def detached_results(session: Session | AsyncSession) -> Iterator[None]:
    """Detach every instance a query loads into the identity map.

    Instances the session already tracked, or had staged, before the block
    stay tracked. Anything loaded inside the block, eager loads included,
    is expunged on exit so mutating it stages nothing.
    """
    sync_session = _sync_session(session)
    known = [*sync_session.identity_map.values(), *sync_session.new]
    seen = {id(obj) for obj in known}
    try:
        yield
    finally:
        for obj in list(sync_session.identity_map.values()):
            if id(obj) not in seen and obj in sync_session:
                sync_session.expunge(obj)


def identity_of(entity: Any) -> tuple[Any, ...] | None:
    """Return the primary key of entity, or None if any part is unset."""
    state = inspect(entity)
    if state.key is not None:
        return tuple(state.key[1])
    values = state.mapper.primary_key_from_instance(entity)
    if any(value is None for value in values):
        return None
    return tuple(values)


def prepare_attach(session: Session | AsyncSession, entity: Any) -> Any | None:
    """Give entity an identity and return a conflicting tracked instance.

    A transient entity carrying its full primary key becomes detached, i.e.
    it is taken to describe a row that already exists. Its unset columns
    are filled first, so attaching it describes the whole row. When the
    session already holds a different instance for that identity, that
    instance is returned and the caller must merge onto it rather than add
    entity.
    """
    state = inspect(entity)
    if state.transient:
        if identity_of(entity) is None:
            raise MissingPrimaryKeyError(type(entity).__name__)
        fill_unset_columns(entity)
        make_transient_to_detached(entity)
    if state.key is None:
        return None
    existing = session.identity_map.get(state.key)
    if existing is not None and existing is not entity:
        return existing
    return None


def fill_unset_columns(entity: Any) -> None:
    """Set every unset column to its scalar Python default, else None."""
    state = inspect(entity)
    for prop in state.mapper.column_attrs:
        if prop.key in state.dict:
            continue
        default = prop.columns[0].default
        value = default.arg if default is not None and default.is_scalar else None
        setattr(entity, prop.key, value)


def mark_all_modified(entity: Any) -> None:
    """Flag every loaded non-key column so the next flush rewrites the whole row.

    Columns already carrying history keep it, so their original value
    stays available to the audit trail.
    """
    state = inspect(entity)
    mapper = state.mapper
    key_attrs = {mapper.get_property_by_column(column).key for column in mapper.primary_key}
    for prop in mapper.column_attrs:
        if prop.key in key_attrs or prop.key not in state.dict:
            continue
        if state.attrs[prop.key].history.has_changes():
            continue
        flag_modified(entity, prop.key)


def is_pending(entity: Any) -> bool:
    """True for an entity staged for insert but not yet flushed."""
    return bool(inspect(entity).pending)


def count_pending_changes(session: Session | AsyncSession) -> int:
    """Count staged inserts, effective updates and deletes."""
    modified = sum(
        1 for obj in session.dirty if session.is_modified(obj, include_collections=False)
    )
    return len(session.new) + modified + len(session.deleted)
