"""Book catalog operations."""

from .book_service import BookService, BookSubmission

__all__ = ["BookService", "BookSubmission"]
