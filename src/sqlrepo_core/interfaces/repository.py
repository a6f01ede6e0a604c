"""Abstract repository interfaces.

Every operation takes the mapped entity class first, so one repository
instance serves all entity types sharing a session.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from sqlalchemy import Select

T = TypeVar("T")


@runtime_checkable
class ReadOnlyRepositoryProtocol(Protocol):
    """Synchronous query interface."""

    def get_filtered(self, entity: type[T], filter: Any) -> Select[tuple[T]]:  # noqa: A002
        """Return an unexecuted select of all rows matching filter."""
        ...

    def get_all(
        self,
        entity: type[T],
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
        include: Sequence[Any] = (),
    ) -> list[T]:
        """Return every row, optionally ordered and paged."""
        ...

    def get(
        self,
        entity: type[T],
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
        include: Sequence[Any] = (),
    ) -> list[T]:
        """Return rows matching filter, optionally ordered and paged."""
        ...

    def get_projected(
        self,
        entity: type[T],
        selector: Any,
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[Any]:
        """Return selector values for rows matching filter."""
        ...

    def get_one(
        self, entity: type[T], filter: Any = None, include: Sequence[Any] = ()  # noqa: A002
    ) -> T | None:
        """Return the single matching row, None if absent; raise if several."""
        ...

    def get_first(
        self,
        entity: type[T],
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
        include: Sequence[Any] = (),
    ) -> T | None:
        """Return the first matching row or None."""
        ...

    def get_first_projected(
        self,
        entity: type[T],
        selector: Any,
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
    ) -> Any:
        """Return selector values of the first matching row or None."""
        ...

    def get_by_id(self, entity: type[T], *ids: Any) -> T | None:
        """Look a row up by primary key value(s)."""
        ...

    def get_count(self, entity: type[T], filter: Any = None) -> int:  # noqa: A002
        """Count rows matching filter."""
        ...

    def get_exists(self, entity: type[T], filter: Any = None) -> bool:  # noqa: A002
        """Return True if at least one row matches filter."""
        ...


@runtime_checkable
class RepositoryProtocol(ReadOnlyRepositoryProtocol, Protocol):
    """Synchronous read-write interface."""

    def set_username(self, username: str) -> None:
        """Set the actor attributed to saved changes."""
        ...

    def reset_username(self) -> None:
        """Clear the acting username."""
        ...

    def create(self, *entities: Any) -> None:
        """Stage entities for insertion."""
        ...

    def update(self, *entities: Any) -> None:
        """Stage entities as fully modified."""
        ...

    def upsert(self, *entities: Any, is_update: bool | None = None) -> None:
        """Stage each entity as an update if it exists, else as an insert."""
        ...

    def delete_by_id(self, entity: type[T], *ids: Any) -> bool:
        """Stage the row with the given key for removal; False if absent."""
        ...

    def delete(self, entity: Any) -> bool:
        """Stage an entity for removal; False for None."""
        ...

    def save(self, actor: str | None = None) -> int:
        """Commit staged changes, clear tracking and return the change count."""
        ...


@runtime_checkable
class AsyncReadOnlyRepositoryProtocol(Protocol):
    """Asynchronous query interface."""

    def get_filtered(self, entity: type[T], filter: Any) -> Select[tuple[T]]:  # noqa: A002
        """Return an unexecuted select of all rows matching filter."""
        ...

    async def get_all(
        self,
        entity: type[T],
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
        include: Sequence[Any] = (),
    ) -> list[T]:
        """Return every row, optionally ordered and paged."""
        ...

    async def get(
        self,
        entity: type[T],
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
        include: Sequence[Any] = (),
    ) -> list[T]:
        """Return rows matching filter, optionally ordered and paged."""
        ...

    async def get_projected(
        self,
        entity: type[T],
        selector: Any,
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
        skip: int | None = None,
        take: int | None = None,
    ) -> list[Any]:
        """Return selector values for rows matching filter."""
        ...

    async def get_one(
        self, entity: type[T], filter: Any = None, include: Sequence[Any] = ()  # noqa: A002
    ) -> T | None:
        """Return the single matching row, None if absent; raise if several."""
        ...

    async def get_first(
        self,
        entity: type[T],
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
        include: Sequence[Any] = (),
    ) -> T | None:
        """Return the first matching row or None."""
        ...

    async def get_first_projected(
        self,
        entity: type[T],
        selector: Any,
        filter: Any = None,  # noqa: A002
        order_by: Any = None,
    ) -> Any:
        """Return selector values of the first matching row or None."""
        ...

    async def get_by_id(self, entity: type[T], *ids: Any) -> T | None:
        """Look a row up by primary key value(s)."""
        ...

    async def get_count(self, entity: type[T], filter: Any = None) -> int:  # noqa: A002
        """Count rows matching filter."""
        ...

    async def get_exists(self, entity: type[T], filter: Any = None) -> bool:  # noqa: A002
        """Return True if at least one row matches filter."""
        ...


@runtime_checkable
class AsyncRepositoryProtocol(AsyncReadOnlyRepositoryProtocol, Protocol):
    """Asynchronous read-write interface."""

    def set_username(self, username: str) -> None:
        """Set the actor attributed to saved changes."""
        ...

    def reset_username(self) -> None:
        """Clear the acting username."""
        ...

    async def create(self, *entities: Any) -> None:
        """Stage entities for insertion."""
        ...

    async def update(self, *entities: Any) -> None:
        """Stage entities as fully modified."""
        ...

    async def upsert(self, *entities: Any, is_update: bool | None = None) -> None:
        """Stage each entity as an update if it exists, else as an insert."""
        ...

    async def delete_by_id(self, entity: type[T], *ids: Any) -> bool:
        """Stage the row with the given key for removal; False if absent."""
        ...

    async def delete(self, entity: Any) -> bool:
        """Stage an entity for removal; False for None."""
        ...

    async def save(self, actor: str | None = None) -> int:
        """Commit staged changes, clear tracking and return the change count."""
        ...
