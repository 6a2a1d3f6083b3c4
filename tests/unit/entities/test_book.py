"""Unit tests for the book entity package.

The domain model, table model and repository live side by side in
``src.catalog.entities.service.book``.
"""

from datetime import UTC, datetime
from uuid import UUID

import pytest
from pydantic import ValidationError
from sqlmodel import Session

from src.catalog.entities.service.book import Book, BookRepository, BookTable
from src.catalog.entities.service.book.entity import MAX_PRICE_IN_CENTS


class TestBook:
    """Test the Book domain entity."""

    def test_book_creation_with_defaults(self):
        book = Book(title="Dom Casmurro", price_in_cents=4990)

        UUID(book.id)
        assert book.cover_path is None
        assert not book.has_cover
        assert book.created_at is not None

    def test_empty_title_rejected(self):
        with pytest.raises(ValidationError):
            Book(title="", price_in_cents=100)

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            Book(title="Dom Casmurro", price_in_cents=-1)

    def test_price_above_maximum_rejected(self):
        with pytest.raises(ValidationError):
            Book(title="Dom Casmurro", price_in_cents=MAX_PRICE_IN_CENTS + 1)

    def test_equality_ignores_timestamps(self):
        first = Book(id="b1", title="Iracema", price_in_cents=1000)
        second = first.model_copy(update={"updated_at": first.updated_at.replace(year=2000)})

        assert first == second
        assert hash(first) == hash(second)
        assert first != first.model_copy(update={"price_in_cents": 1001})


class TestBookRepository:
    """Test the book repository against a real SQLite session."""

    def test_create_and_get(self, session: Session):
        repo = BookRepository(session)

        created = repo.create(Book(title="Iracema", price_in_cents=1500, cover_path="a.jpg"))

        loaded = repo.get(created.id)
        assert loaded == created
        assert session.get(BookTable, created.id) is not None

    def test_get_missing(self, session: Session):
        assert BookRepository(session).get("missing") is None

    def test_list_in_insertion_order(self, session: Session):
        repo = BookRepository(session)
        titles = ["Primeiro", "Segundo", "Terceiro"]
        for title in titles:
            repo.create(Book(title=title, price_in_cents=100))

        assert [book.title for book in repo.list_all()] == titles
        assert repo.count() == 3

    def test_same_timestamp_keeps_insertion_order(self, session: Session):
        repo = BookRepository(session)
        created_at = datetime(2024, 1, 1, tzinfo=UTC)
        for book_id in ["c", "b", "a"]:
            repo.create(
                Book(
                    id=book_id,
                    title=f"Livro {book_id}",
                    price_in_cents=100,
                    created_at=created_at,
                    updated_at=created_at,
                )
            )

        assert [book.id for book in repo.list_all()] == ["c", "b", "a"]

    def test_update(self, session: Session):
        repo = BookRepository(session)
        created = repo.create(Book(title="Antigo", price_in_cents=100))

        updated = repo.update(created.model_copy(update={"title": "Novo", "price_in_cents": 250}))

        assert updated.title == "Novo"
        assert updated.price_in_cents == 250
        assert repo.get(created.id).title == "Novo"

    def test_update_missing_raises(self, session: Session):
        with pytest.raises(ValueError):
            BookRepository(session).update(Book(title="Fantasma", price_in_cents=1))

    def test_delete(self, session: Session):
        repo = BookRepository(session)
        created = repo.create(Book(title="Some", price_in_cents=100))

        assert repo.delete(created.id) is True
        assert repo.get(created.id) is None
        assert repo.delete(created.id) is False
