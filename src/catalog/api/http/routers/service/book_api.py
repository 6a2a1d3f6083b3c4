"""JSON API over the book catalog, sharing the session cookie with the pages."""

from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from pydantic import BaseModel

from src.catalog.api.http.deps import get_book_service, get_current_user, require_csrf
from src.catalog.api.http.routers.service.book import to_cover_upload
from src.catalog.core.pricing import format_price
from src.catalog.core.services import BookService, BookSubmission
from src.catalog.entities.core.user import User
from src.catalog.entities.service.book import Book

router = APIRouter(prefix="/api/books", tags=["books-api"])


class BookRead(BaseModel):
    id: str
    title: str
    price_in_cents: int
    price: str
    cover_path: str | None
    cover_url: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_book(cls, book: Book, covers_url: str) -> "BookRead":
        return cls(
            id=book.id,
            title=book.title,
            price_in_cents=book.price_in_cents,
            price=format_price(book.price_in_cents),
            cover_path=book.cover_path,
            cover_url=f"{covers_url}/{book.cover_path}" if book.cover_path else None,
            created_at=book.created_at,
            updated_at=book.updated_at,
        )


def _covers_url(request: Request) -> str:
    return request.app.state.app_dependencies.config.storage.covers_url_prefix.rstrip("/")


@router.get("", response_model=list[BookRead])
def list_books(
    request: Request,
    user: User = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service),
) -> list[BookRead]:
    covers_url = _covers_url(request)
    return [BookRead.from_book(b, covers_url) for b in book_service.list_books(user)]


@router.get("/{book_id}", response_model=BookRead)
def get_book(
    request: Request,
    book_id: str,
    user: User = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service),
) -> BookRead:
    return BookRead.from_book(book_service.get_book(user, book_id), _covers_url(request))


@router.post(
    "",
    response_model=BookRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_csrf)],
)
def create_book(
    request: Request,
    title: str = Form(""),
    price: str = Form(""),
    cover: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service),
) -> BookRead:
    """Create a book from a multipart form; ``price`` uses a decimal comma."""
    submission = BookSubmission(
        title=title, price_text=price, cover=to_cover_upload(cover)
    )
    book = book_service.create_book(user, submission)
    return BookRead.from_book(book, _covers_url(request))


@router.patch(
    "/{book_id}", response_model=BookRead, dependencies=[Depends(require_csrf)]
)
def update_book(
    request: Request,
    book_id: str,
    title: str | None = Form(None),
    price: str | None = Form(None),
    cover: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service),
) -> BookRead:
    """Partially update a book; omitted or blank fields keep their stored values."""
    submission = BookSubmission(
        title=title, price_text=price, cover=to_cover_upload(cover)
    )
    book = book_service.update_book(user, book_id, submission)
    return BookRead.from_book(book, _covers_url(request))


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_csrf)],
)
def delete_book(
    book_id: str,
    user: User = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service),
) -> Response:
    book_service.delete_book(user, book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
