"""Audit trail written alongside every flush.

A tracker hangs off one session and records who added, modified or deleted
entities marked with ``TrackChanges``. Rows go through the flush's own
connection so they commit or roll back together with the change.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import event, insert, inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from sqlrepo_infra.db.models import AuditLogDetailModel, AuditLogModel

if TYPE_CHECKING:
    from sqlalchemy.orm import UOWTransaction

logger = structlog.get_logger()

_INFO_KEY = "sqlrepo.audit_tracker"

EVENT_ADDED = "Added"
EVENT_MODIFIED = "Modified"
EVENT_DELETED = "Deleted"


@dataclass
class _AuditEntry:
    event_type: str
    table_name: str
    record_id: str
    details: list[dict[str, str | None]] = field(default_factory=list)


class AuditTracker:
    """Writes audit_logs rows for tracked entities on each flush."""

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._username = ""

    @classmethod
    def for_session(cls, session: Session | AsyncSession, enabled: bool = True) -> AuditTracker:
        """Return the session's tracker, attaching a new one on first use."""
        sync_session = session.sync_session if isinstance(session, AsyncSession) else session
        tracker: AuditTracker | None = sync_session.info.get(_INFO_KEY)
        if tracker is None:
            tracker = cls(enabled)
            event.listen(sync_session, "after_flush", tracker._after_flush)
            sync_session.info[_INFO_KEY] = tracker
        else:
            tracker.enabled = enabled
        return tracker

    @property
    def username(self) -> str:
        """Actor recorded on the next audit rows."""
        return self._username

    def configure_username(self, username: str) -> None:
        """Set the actor recorded on subsequent audit rows."""
        self._username = username

    @contextmanager
    def acting_as(self, username: str) -> Iterator[None]:
        """Temporarily record changes under another actor."""
        previous = self._username
        self._username = username
        try:
            yield
        finally:
            self._username = previous

    def _after_flush(self, session: Session, flush_context: UOWTransaction) -> None:
        # Pre-flush state (new/dirty/deleted and attribute history) is still
        # visible here, and generated keys are already populated.
        if not self.enabled:
            return
        entries = [
            *(_added_entry(obj) for obj in session.new if _is_tracked(obj)),
            *(
                _modified_entry(obj)
                for obj in session.dirty
                if _is_tracked(obj) and session.is_modified(obj, include_collections=False)
            ),
            *(_deleted_entry(obj) for obj in session.deleted if _is_tracked(obj)),
        ]
        if entries:
            self._write(session, entries)

    def _write(self, session: Session, entries: list[_AuditEntry]) -> None:
        connection = session.connection()
        now = datetime.now(UTC)
        for entry in entries:
            result = connection.execute(
                insert(AuditLogModel.__table__).values(
                    username=self._username,
                    event_type=entry.event_type,
                    table_name=entry.table_name,
                    record_id=entry.record_id,
                    event_date=now,
                )
            )
            if entry.details:
                log_id = result.inserted_primary_key[0]
                connection.execute(
                    insert(AuditLogDetailModel.__table__),
                    [{**detail, "audit_log_id": log_id} for detail in entry.details],
                )
        logger.debug(
            "audit_entries_written", count=len(entries), username=self._username
        )


def _is_tracked(obj: Any) -> bool:
    return bool(getattr(type(obj), "__tracked__", False))


def _record_id(obj: Any) -> str:
    state = inspect(obj)
    if state.key is not None:
        values = state.identity
    else:
        values = state.mapper.primary_key_from_instance(obj)
    return ",".join(str(value) for value in values)


def _table_name(obj: Any) -> str:
    return str(inspect(obj).mapper.local_table.name)


def _tracked_columns(obj: Any) -> Iterator[str]:
    skipped = set(getattr(type(obj), "__skip_tracking__", ()))
    for prop in inspect(obj).mapper.column_attrs:
        if prop.key not in skipped:
            yield prop.key


def _stringify(value: Any) -> str | None:
    return None if value is None else str(value)


def _added_entry(obj: Any) -> _AuditEntry:
    state = inspect(obj)
    details = [
        {"column_name": key, "original_value": None, "new_value": _stringify(state.dict[key])}
        for key in _tracked_columns(obj)
        if key in state.dict
    ]
    return _AuditEntry(EVENT_ADDED, _table_name(obj), _record_id(obj), details)


def _modified_entry(obj: Any) -> _AuditEntry:
    state = inspect(obj)
    details = []
    for key in _tracked_columns(obj):
        history = state.attrs[key].history
        if not history.has_changes():
            continue
        details.append(
            {
                "column_name": key,
                "original_value": _stringify(history.deleted[0]) if history.deleted else None,
                "new_value": _stringify(history.added[0]) if history.added else None,
            }
        )
    return _AuditEntry(EVENT_MODIFIED, _table_name(obj), _record_id(obj), details)


def _deleted_entry(obj: Any) -> _AuditEntry:
    return _AuditEntry(EVENT_DELETED, _table_name(obj), _record_id(obj))
