"""Query descriptor and the select builder shared by every repository.

Composition order is fixed: filter, includes, ordering, skip, take.
Paging without an ordering yields whatever order the database returns.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy import ClauseElement, Select, func, inspect, select
from sqlalchemy.orm import QueryableAttribute, selectinload

from sqlrepo_core.exceptions import IncludePathError

T = TypeVar("T")

OrderFunction = Callable[[Select[Any]], Select[Any]]


@dataclass(frozen=True)
class QuerySpec:
    """Per-call description of filter, ordering, paging and eager loads."""

    filter: Any = None
    order_by: Any = None
    skip: int | None = None
    take: int | None = None
    include: tuple[Any, ...] = ()


def build_select(entity: type[T], spec: QuerySpec) -> Select[tuple[T]]:
    """Compose a select over entity from spec."""
    stmt = apply_filter(select(entity), spec.filter)
    for path in spec.include:
        stmt = stmt.options(resolve_include(entity, path))
    return _apply_paging(_apply_order(stmt, spec.order_by), spec)


def build_projection(entity: type[T], selector: Any, spec: QuerySpec) -> Select[Any]:
    """Compose the select for spec, then narrow it to the selector columns.

    Includes are dropped: loader options have no meaning for column rows.
    """
    stmt = _apply_order(apply_filter(select(entity), spec.filter), spec.order_by)
    stmt = _apply_paging(stmt, spec)
    return stmt.with_only_columns(*_selector_columns(selector), maintain_column_froms=True)


def build_count(entity: type[T], spec: QuerySpec) -> Select[tuple[int]]:
    """Count the rows spec selects."""
    return select(func.count()).select_from(build_select(entity, spec).subquery())


def build_exists(entity: type[T], spec: QuerySpec) -> Select[tuple[bool]]:
    """Select a single boolean telling whether spec matches anything."""
    return select(build_select(entity, spec).exists())


def apply_filter(stmt: Select[Any], filter: Any) -> Select[Any]:  # noqa: A002
    """Apply a boolean expression or a sequence of them (AND-ed)."""
    if filter is None:
        return stmt
    if isinstance(filter, (list, tuple)):
        return stmt.where(*filter)
    return stmt.where(filter)


def resolve_include(entity: type[Any], path: Any) -> Any:
    """Turn an include path into a loader option.

    Accepts a relationship attribute, a dotted relationship path such as
    ``"books.reviews"`` or an already built loader option.
    """
    if isinstance(path, QueryableAttribute):
        return selectinload(path)
    if not isinstance(path, str):
        return path

    mapper = inspect(entity)
    option = None
    for segment in path.split("."):
        if segment not in mapper.relationships:
            raise IncludePathError(entity.__name__, path, segment)
        attr = getattr(mapper.class_, segment)
        option = selectinload(attr) if option is None else option.selectinload(attr)
        mapper = mapper.relationships[segment].mapper
    return option


def is_single_column(selector: Any) -> bool:
    """True when a projection yields scalars rather than rows."""
    return not isinstance(selector, (list, tuple))


def _selector_columns(selector: Any) -> tuple[Any, ...]:
    if isinstance(selector, (list, tuple)):
        return tuple(selector)
    return (selector,)


def _apply_order(stmt: Select[Any], order_by: Any) -> Select[Any]:
    if order_by is None:
        return stmt
    if isinstance(order_by, (list, tuple)):
        return stmt.order_by(*order_by)
    if _is_order_function(order_by):
        return order_by(stmt)
    return stmt.order_by(order_by)


def _is_order_function(order_by: Any) -> bool:
    if isinstance(order_by, (ClauseElement, QueryableAttribute)):
        return False
    return callable(order_by) and not hasattr(order_by, "__clause_element__")


def _apply_paging(stmt: Select[Any], spec: QuerySpec) -> Select[Any]:
    if spec.skip is not None:
        stmt = stmt.offset(spec.skip)
    if spec.take is not None:
        stmt = stmt.limit(spec.take)
    return stmt


def make_spec(
    filter: Any = None,  # noqa: A002
    order_by: Any = None,
    skip: int | None = None,
    take: int | None = None,
    include: Sequence[Any] = (),
) -> QuerySpec:
    """Build a QuerySpec from repository keyword arguments."""
    return QuerySpec(
        filter=filter, order_by=order_by, skip=skip, take=take, include=tuple(include)
    )
