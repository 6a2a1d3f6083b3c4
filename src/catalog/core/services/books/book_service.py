"""Book directory and write operations.

Every write is one unit of work on the request's database session: the row
and the cover reference are committed together, and a cover written for a
failed operation is removed again.
"""

from dataclasses import dataclass

from loguru import logger
from sqlmodel import Session

from src.catalog.core import policy
from src.catalog.core.errors import NotFoundError, ValidationError
from src.catalog.core.policy import DEFAULT_ADMIN_ROLE, Action
from src.catalog.core.pricing import parse_price
from src.catalog.core.services.covers.cover_storage import CoverStorage, CoverUpload
from src.catalog.entities.core.user import User
from src.catalog.entities.service.book import Book, BookRepository

TITLE_FIELD = "title"
TITLE_MAX_LENGTH = 255


@dataclass
class BookSubmission:
    """Form input for creating or editing a book.

    ``None`` means the field was not submitted; on edit it leaves the stored
    value unchanged.
    """

    title: str | None = None
    price_text: str | None = None
    cover: CoverUpload | None = None


def _clean_title(title: str | None) -> str:
    value = (title or "").strip()
    if not value:
        raise ValidationError.for_field(TITLE_FIELD, "Informe o título.")
    if len(value) > TITLE_MAX_LENGTH:
        raise ValidationError.for_field(
            TITLE_FIELD, f"O título deve ter no máximo {TITLE_MAX_LENGTH} caracteres."
        )
    return value


class BookService:
    def __init__(
        self,
        db_session: Session,
        cover_storage: CoverStorage,
        admin_role: str = DEFAULT_ADMIN_ROLE,
    ) -> None:
        self._db_session = db_session
        self._book_repo = BookRepository(db_session)
        self._covers = cover_storage
        self._admin_role = admin_role

    def authorize(self, actor: User, action: Action) -> None:
        """Raise ``AuthorizationError`` unless ``actor`` may perform ``action``."""
        policy.authorize(actor.roles, action, self._admin_role)

    def _load(self, book_id: str) -> Book:
        book = self._book_repo.get(book_id)
        if book is None:
            raise NotFoundError(f"Book {book_id} not found")
        return book

    def _validate(
        self, submission: BookSubmission, *, partial: bool
    ) -> tuple[str | None, int | None]:
        """Validate submitted fields, collecting every field error at once."""
        errors: dict[str, str] = {}
        title = price = None

        if submission.title is not None or not partial:
            try:
                title = _clean_title(submission.title)
            except ValidationError as e:
                errors.update(e.errors)

        if submission.price_text is not None or not partial:
            try:
                price = parse_price(submission.price_text)
            except ValidationError as e:
                errors.update(e.errors)

        if submission.cover is not None:
            try:
                self._covers.validate(submission.cover)
            except ValidationError as e:
                errors.update(e.errors)

        if errors:
            raise ValidationError(errors)
        return title, price

    def list_books(self, actor: User) -> list[Book]:
        self.authorize(actor, Action.LIST)
        return self._book_repo.list_all()

    def get_book(self, actor: User, book_id: str) -> Book:
        """Return one book.

        Raises:
            NotFoundError: No book has this id.
        """
        self.authorize(actor, Action.VIEW)
        return self._load(book_id)

    def count_books(self) -> int:
        return self._book_repo.count()

    def create_book(self, actor: User, submission: BookSubmission) -> Book:
        """Validate and persist a new book together with its optional cover.

        Raises:
            AuthorizationError: The actor is not an administrator.
            ValidationError: Title, price or cover are invalid.
            StorageError: The cover could not be written.
        """
        self.authorize(actor, Action.CREATE)
        title, price = self._validate(submission, partial=False)

        cover_name = None
        if submission.cover is not None:
            cover_name = self._covers.save(submission.cover)

        try:
            book = self._book_repo.create(
                Book(title=title, price_in_cents=price, cover_path=cover_name)
            )
            self._db_session.commit()
        except Exception:
            self._db_session.rollback()
            self._covers.discard(cover_name)
            raise

        logger.info(
            "book.created book_id={} actor={} cover={}", book.id, actor.id, cover_name
        )
        return book

    def update_book(
        self, actor: User, book_id: str, submission: BookSubmission
    ) -> Book:
        """Apply the submitted fields to an existing book.

        Fields left as ``None`` keep their stored value. A replaced cover file
        is removed only after the new reference has been committed.

        Raises:
            AuthorizationError: The actor is not an administrator.
            NotFoundError: No book has this id.
            ValidationError: A submitted field is invalid.
            StorageError: The new cover could not be written.
        """
        self.authorize(actor, Action.EDIT)
        book = self._load(book_id)
        title, price = self._validate(submission, partial=True)

        new_cover = None
        if submission.cover is not None:
            new_cover = self._covers.save(submission.cover)

        previous_cover = book.cover_path
        changes = {}
        if title is not None:
            changes["title"] = title
        if price is not None:
            changes["price_in_cents"] = price
        if new_cover is not None:
            changes["cover_path"] = new_cover

        try:
            updated = self._book_repo.update(book.model_copy(update=changes))
            self._db_session.commit()
        except Exception:
            self._db_session.rollback()
            self._covers.discard(new_cover)
            raise

        if new_cover is not None and previous_cover and previous_cover != new_cover:
            self._covers.discard(previous_cover)

        logger.info(
            "book.updated book_id={} actor={} fields={}",
            book_id,
            actor.id,
            sorted(changes),
        )
        return updated

    def delete_book(self, actor: User, book_id: str) -> None:
        """Remove a book and then its cover file.

        Raises:
            AuthorizationError: The actor is not an administrator.
            NotFoundError: No book has this id.
        """
        self.authorize(actor, Action.DELETE)
        book = self._load(book_id)

        try:
            self._book_repo.delete(book.id)
            self._db_session.commit()
        except Exception:
            self._db_session.rollback()
            raise

        self._covers.discard(book.cover_path)
        logger.info("book.deleted book_id={} actor={}", book_id, actor.id)
