"""Book repository for data access operations."""

from datetime import UTC, datetime

from sqlalchemy import func
from sqlmodel import Session, select

from .entity import Book
from .table import BookTable


class BookRepository:
    """Data-access layer for books.

    The repository flushes but never commits; transaction boundaries belong
    to the caller.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, book_id: str) -> Book | None:
        """Get a book by ID."""
        row = self._session.get(BookTable, book_id)
        if row is None:
            return None
        return Book.model_validate(row, from_attributes=True)

    def list_all(self) -> list[Book]:
        """List all books in insertion order."""
        statement = select(BookTable).order_by(BookTable.position)
        rows = self._session.exec(statement).all()
        return [Book.model_validate(row, from_attributes=True) for row in rows]

    def count(self) -> int:
        statement = select(func.count()).select_from(BookTable)
        return self._session.exec(statement).one()

    def _next_position(self) -> int:
        statement = select(func.coalesce(func.max(BookTable.position), 0))
        return self._session.exec(statement).one() + 1

    def create(self, book: Book) -> Book:
        """Create a new book."""
        row = BookTable.model_validate(book.model_dump())
        row.position = self._next_position()
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Book.model_validate(row, from_attributes=True)

    def update(self, book: Book) -> Book:
        """Update an existing book.

        Raises:
            ValueError: If no book with ``book.id`` exists.
        """
        row = self._session.get(BookTable, book.id)
        if row is None:
            raise ValueError(f"Book with ID {book.id} not found")

        row.title = book.title
        row.price_in_cents = book.price_in_cents
        row.cover_path = book.cover_path
        row.updated_at = datetime.now(UTC)
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Book.model_validate(row, from_attributes=True)

    def delete(self, book_id: str) -> bool:
        """Delete a book; returns False when it did not exist."""
        row = self._session.get(BookTable, book_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True
