"""Tests for the select builder."""

from __future__ import annotations

import pytest
from sqlalchemy import Select, select
from sqlalchemy.orm import selectinload

from sqlrepo_core.exceptions import IncludePathError
from sqlrepo_infra.db.query import (
    QuerySpec,
    build_count,
    build_exists,
    build_projection,
    build_select,
    is_single_column,
    make_spec,
    resolve_include,
)
from tests.mocks.mock_models import Author, Book


def _sql(stmt: Select) -> str:  # type: ignore[type-arg]
    return " ".join(str(stmt).split())


@pytest.mark.unit
class TestBuildSelect:
    """Composition order and option handling."""

    def test_empty_spec_selects_everything(self) -> None:
        """No filter means no WHERE clause."""
        sql = _sql(build_select(Author, QuerySpec()))
        assert "WHERE" not in sql
        assert "ORDER BY" not in sql
        assert "LIMIT" not in sql

    def test_clauses_follow_filter_order_skip_take(self) -> None:
        """WHERE precedes ORDER BY which precedes LIMIT/OFFSET."""
        spec = make_spec(Author.name != "x", Author.name, skip=2, take=3)
        sql = _sql(build_select(Author, spec))
        assert sql.index("WHERE") < sql.index("ORDER BY") < sql.index("LIMIT")
        assert "OFFSET" in sql

    def test_sequence_filter_is_anded(self) -> None:
        """A list of expressions becomes one AND-ed WHERE clause."""
        spec = make_spec([Author.name == "a", Author.email.is_(None)])
        sql = _sql(build_select(Author, spec))
        assert "authors.name = :name_1 AND authors.email IS NULL" in sql

    def test_order_function_receives_select(self) -> None:
        """A callable ordering is applied to the filtered select."""
        seen: list[Select] = []  # type: ignore[type-arg]

        def order(stmt: Select) -> Select:  # type: ignore[type-arg]
            seen.append(stmt)
            return stmt.order_by(Author.name.desc())

        sql = _sql(build_select(Author, make_spec(Author.id > 1, order)))
        assert len(seen) == 1
        assert "WHERE" in _sql(seen[0])
        assert "ORDER BY authors.name DESC" in sql

    def test_order_sequence(self) -> None:
        """A list of order expressions keeps its order."""
        sql = _sql(build_select(Author, make_spec(order_by=[Author.name, Author.id.desc()])))
        assert "ORDER BY authors.name, authors.id DESC" in sql

    def test_take_without_skip(self) -> None:
        """take alone adds LIMIT but no OFFSET."""
        sql = _sql(build_select(Author, make_spec(take=1)))
        assert "LIMIT" in sql
        assert "OFFSET" not in sql


@pytest.mark.unit
class TestDerivedSelects:
    """Projection, count and exists statements."""

    def test_projection_narrows_columns(self) -> None:
        """Only the selector columns are selected."""
        stmt = build_projection(Author, Author.name, make_spec(order_by=Author.name, take=2))
        sql = _sql(stmt)
        assert sql.startswith("SELECT authors.name FROM authors")
        assert "authors.email" not in sql
        assert "LIMIT" in sql

    def test_projection_ignores_includes(self) -> None:
        """Loader options are not carried into a projection."""
        spec = make_spec(include=[Author.books])
        stmt = build_projection(Author, [Author.id, Author.name], spec)
        assert stmt._with_options == ()

    def test_count_wraps_subquery(self) -> None:
        """Count selects count(*) over the filtered select."""
        sql = _sql(build_count(Author, make_spec(Author.name == "a")))
        assert sql.startswith("SELECT count(*) AS count_1 FROM (SELECT")

    def test_exists(self) -> None:
        """Exists selects a single EXISTS expression."""
        sql = _sql(build_exists(Author, QuerySpec()))
        assert sql.startswith("SELECT EXISTS (SELECT")

    @pytest.mark.parametrize(
        ("selector", "expected"),
        [
            (Author.name, True),
            ([Author.name], False),
            ((Author.id, Author.name), False),
        ],
    )
    def test_is_single_column(self, selector: object, expected: bool) -> None:
        """Only a bare expression projects to scalars."""
        assert is_single_column(selector) is expected


@pytest.mark.unit
class TestResolveInclude:
    """Include path resolution."""

    def test_attribute_becomes_selectinload(self) -> None:
        """Relationship attributes are wrapped in selectinload."""
        option = resolve_include(Author, Author.books)
        stmt = select(Author).options(option)
        assert len(stmt._with_options) == 1

    def test_dotted_path_chains(self) -> None:
        """Dotted strings resolve through each relationship."""
        option = resolve_include(Author, "books.reviews")
        assert option is not None
        select(Author).options(option)

    def test_loader_option_passes_through(self) -> None:
        """Ready-made loader options are returned untouched."""
        option = selectinload(Book.reviews)
        assert resolve_include(Book, option) is option

    def test_unknown_segment_raises(self) -> None:
        """A segment that is not a relationship raises IncludePathError."""
        with pytest.raises(IncludePathError, match="'name' is not a relationship") as exc:
            resolve_include(Author, "name")
        assert exc.value.path == "name"

    def test_unknown_nested_segment_raises(self) -> None:
        """Validation continues on the related mapper."""
        with pytest.raises(IncludePathError) as exc:
            resolve_include(Author, "books.author.nope")
        assert exc.value.segment == "nope"
