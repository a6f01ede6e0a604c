"""SQLAlchemy ORM base, change-tracking mixin and audit trail tables."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import ClassVar

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class TrackChanges:
    """Mixin marking an entity for the audit trail.

    Columns listed in ``__skip_tracking__`` never get detail rows.
    """

    __tracked__: ClassVar[bool] = True
    __skip_tracking__: ClassVar[tuple[str, ...]] = ()


class AuditLogModel(Base):
    """One audited change to one entity."""

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    event_type: Mapped[str] = mapped_column(String(20), nullable=False)
    table_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    record_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    event_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    details: Mapped[list[AuditLogDetailModel]] = relationship(
        back_populates="audit_log", order_by="AuditLogDetailModel.id"
    )


class AuditLogDetailModel(Base):
    """Original and new value of one column within an audited change."""

    __tablename__ = "audit_log_details"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    audit_log_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("audit_logs.id"), nullable=False
    )
    column_name: Mapped[str] = mapped_column(String(255), nullable=False)
    original_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)

    audit_log: Mapped[AuditLogModel] = relationship(back_populates="details")
