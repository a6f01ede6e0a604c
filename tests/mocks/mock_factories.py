"""Factory functions returning entity instances and seeded data sets."""

from __future__ import annotations

from tests.mocks.mock_models import Author, Book, Membership, Review

AUTHOR_NAMES = ("Ada", "Borges", "Calvino", "Dickens", "Eco")


def make_author(**overrides: object) -> Author:
    """Create a transient Author."""
    defaults: dict[str, object] = {"name": "Ada", "email": "ada@example.com"}
    defaults.update(overrides)
    return Author(**defaults)


def make_book(**overrides: object) -> Book:
    """Create a transient Book; pass author or author_id."""
    defaults: dict[str, object] = {"title": "Untitled", "rating": 3}
    defaults.update(overrides)
    return Book(**defaults)


def make_library() -> list[Author]:
    """Five authors with ids 1..5, each owning two books with one review each.

    Author n has books rated n and n + 5, so ratings 1..10 are all distinct.
    """
    authors = []
    for index, name in enumerate(AUTHOR_NAMES, start=1):
        author = Author(id=index, name=name, email=f"{name.lower()}@example.com")
        for rating in (index, index + 5):
            book = Book(title=f"{name} {rating}", rating=rating)
            book.reviews.append(Review(stars=rating % 5 + 1))
            author.books.append(book)
        authors.append(author)
    return authors


def make_memberships() -> list[Membership]:
    """Three memberships across two groups."""
    return [
        Membership(group_id=1, user_id=1, role="owner"),
        Membership(group_id=1, user_id=2),
        Membership(group_id=2, user_id=1),
    ]
