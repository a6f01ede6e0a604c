"""Generic read-only repositories for any mapped entity.

Every method takes the entity class first. Statements are composed by
``sqlrepo_infra.db.query`` and only executed here, so the blocking and
asyncio flavours stay identical apart from awaiting the session.

Entities returned by list, one and first queries come back detached, so
mutating them stages nothing. ``get_by_id`` results stay tracked.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from sqlrepo_infra.db.query import (
    apply_filter,
    build_count,
    build_exists,
    build_projection,
    build_select,
    is_single_column,
    make_spec,
)
from sqlrepo_infra.db.tracking import detached_results

T = TypeVar("T")


def _identity(ids: tuple[Any, ...]) -> Any:
    """Collapse positional key values into what Session.get expects."""
    return ids[0] if len(ids) == 1 else ids


def get_filtered(entity: type[T], filter: Any) -> Select[tuple[T]]:  # noqa: A002
    """Return an unexecuted select the caller may keep composing."""
    return apply_filter(select(entity), filter)


class SqlAlchemyReadOnlyRepository:
    """Query operations over a blocking session."""

    def __init__(self, session: Session) -> None:
        """Initialize with a session."""
        self._session = session

    @property
    def session(self) -> Session:
        """The session every query runs on."""
        return self._session

    def get_filtered(self, entity: type[T], filter: Any) -> Select[tuple[T]]:  # noqa: A002
        """Return a select of entity rows matching filter, not yet executed."""
        return get_filtered(entity, filter)

    def get_all(
        self,
        entity: type[T],
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
        include: Sequence[Any] = (),
    ) -> list[T]:
        """List every row of entity."""
        return self.get(entity, None, order_by, skip, take, include)

    def get(
        self,
        entity: type[T],
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
        include: Sequence[Any] = (),
    ) -> list[T]:
        """List rows matching filter, ordered, paged and with includes loaded."""
        stmt = build_select(entity, make_spec(filter, order_by, skip, take, include))
        with detached_results(self._session):
            return list(self._session.scalars(stmt).all())

    def get_projected(
        self,
        entity: type[T],
        selector: Any,
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[Any]:
        """List selector values; scalars for one column, rows for several."""
        stmt = build_projection(entity, selector, make_spec(filter, order_by, skip, take))
        result = self._session.execute(stmt)
        if is_single_column(selector):
            return list(result.scalars().all())
        return list(result.all())

    def get_one(
        self, entity: type[T], filter: Any = None, include: Sequence[Any] = ()  # noqa: A002
    ) -> T | None:
        """Return the only match or None.

        Raises:
            sqlalchemy.exc.MultipleResultsFound: more than one row matches.
        """
        stmt = build_select(entity, make_spec(filter, include=include))
        with detached_results(self._session):
            return self._session.execute(stmt).scalar_one_or_none()

    def get_first(
        self,
        entity: type[T],
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
        include: Sequence[Any] = (),
    ) -> T | None:
        """Return the first match in order_by order, or None."""
        stmt = build_select(entity, make_spec(filter, order_by, take=1, include=include))
        with detached_results(self._session):
            return self._session.scalars(stmt).first()

    def get_first_projected(
        self,
        entity: type[T],
        selector: Any,
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
    ) -> Any:
        """Return selector values of the first match, or None."""
        stmt = build_projection(entity, selector, make_spec(filter, order_by, take=1))
        result = self._session.execute(stmt)
        if is_single_column(selector):
            return result.scalars().first()
        return result.first()

    def get_by_id(self, entity: type[T], *ids: Any) -> T | None:
        """Look up by primary key, checking the identity map first."""
        return self._session.get(entity, _identity(ids))

    def get_count(self, entity: type[T], filter: Any = None) -> int:  # noqa: A002
        """Count rows matching filter."""
        return int(self._session.scalar(build_count(entity, make_spec(filter))) or 0)

    def get_exists(self, entity: type[T], filter: Any = None) -> bool:  # noqa: A002
        """Return True if any row matches filter."""
        return bool(self._session.scalar(build_exists(entity, make_spec(filter))))


class AsyncSqlAlchemyReadOnlyRepository:
    """Query operations over an asyncio session."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize with an async session."""
        self._session = session

    @property
    def session(self) -> AsyncSession:
        """The session every query runs on."""
        return self._session

    def get_filtered(self, entity: type[T], filter: Any) -> Select[tuple[T]]:  # noqa: A002
        """Return a select of entity rows matching filter, not yet executed."""
        return get_filtered(entity, filter)

    async def get_all(
        self,
        entity: type[T],
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
        include: Sequence[Any] = (),
    ) -> list[T]:
        """List every row of entity."""
        return await self.get(entity, None, order_by, skip, take, include)

    async def get(
        self,
        entity: type[T],
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
        include: Sequence[Any] = (),
    ) -> list[T]:
        """List rows matching filter, ordered, paged and with includes loaded."""
        stmt = build_select(entity, make_spec(filter, order_by, skip, take, include))
        with detached_results(self._session):
            result = await self._session.scalars(stmt)
            return list(result.all())

    async def get_projected(
        self,
        entity: type[T],
        selector: Any,
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[Any]:
        """List selector values; scalars for one column, rows for several."""
        stmt = build_projection(entity, selector, make_spec(filter, order_by, skip, take))
        result = await self._session.execute(stmt)
        if is_single_column(selector):
            return list(result.scalars().all())
        return list(result.all())

    async def get_one(
        self, entity: type[T], filter: Any = None, include: Sequence[Any] = ()  # noqa: A002
    ) -> T | None:
        """Return the only match or None.

        Raises:
            sqlalchemy.exc.MultipleResultsFound: more than one row matches.
        """
        stmt = build_select(entity, make_spec(filter, include=include))
        with detached_results(self._session):
            result = await self._session.execute(stmt)
            return result.scalar_one_or_none()

    async def get_first(
        self,
        entity: type[T],
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
        include: Sequence[Any] = (),
    ) -> T | None:
        """Return the first match in order_by order, or None."""
        stmt = build_select(entity, make_spec(filter, order_by, take=1, include=include))
        with detached_results(self._session):
            result = await self._session.scalars(stmt)
            return result.first()

    async def get_first_projected(
        self,
        entity: type[T],
        selector: Any,
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
    ) -> Any:
        """Return selector values of the first match, or None."""
        stmt = build_projection(entity, selector, make_spec(filter, order_by, take=1))
        result = await self._session.execute(stmt)
        if is_single_column(selector):
            return result.scalars().first()
        return result.first()

    async def get_by_id(self, entity: type[T], *ids: Any) -> T | None:
        """Look up by primary key, checking the identity map first."""
        return await self._session.get(entity, _identity(ids))

    async def get_count(self, entity: type[T], filter: Any = None) -> int:  # noqa: A002
        """Count rows matching filter."""
        return int(await self._session.scalar(build_count(entity, make_spec(filter))) or 0)

    async def get_exists(self, entity: type[T], filter: Any = None) -> bool:  # noqa: A002
        """Return True if any row matches filter."""
        return bool(await self._session.scalar(build_exists(entity, make_spec(filter))))
