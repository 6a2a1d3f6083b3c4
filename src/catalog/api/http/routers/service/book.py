"""Server-rendered pages for browsing and maintaining the book catalog."""

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import RedirectResponse
from loguru import logger
from starlette.responses import Response

from src.catalog.api.http.deps import get_book_service, get_current_user, require_csrf
from src.catalog.api.http.templating import render
from src.catalog.core.errors import StorageError, ValidationError
from src.catalog.core.policy import Action
from src.catalog.core.pricing import format_price
from src.catalog.core.services import BookService, BookSubmission, CoverUpload
from src.catalog.entities.core.user import User
from src.catalog.entities.service.book import Book

router = APIRouter(prefix="/book", tags=["books"])

INDEX_URL = "/book/"


def to_cover_upload(cover: UploadFile | None) -> CoverUpload | None:
    """An empty file input arrives without a filename and means "no cover"."""
    if cover is None or not cover.filename:
        return None
    return CoverUpload(
        filename=cover.filename, stream=cover.file, content_type=cover.content_type
    )


def _redirect_to_index() -> RedirectResponse:
    return RedirectResponse(INDEX_URL, status_code=status.HTTP_303_SEE_OTHER)


def _form_page(
    request: Request,
    template_name: str,
    values: dict[str, str],
    errors: dict[str, str] | None = None,
    page_error: str | None = None,
    status_code: int = 200,
    book: Book | None = None,
) -> Response:
    if book is None:
        form = {"action": "/book/new", "button_label": "Salvar"}
    else:
        form = {"action": f"/book/{book.id}/edit", "button_label": "Editar"}
    return render(
        request,
        template_name,
        {
            "values": values,
            "errors": errors or {},
            "page_error": page_error,
            "book": book,
            **form,
        },
        status_code=status_code,
    )


@router.get("/")
def list_books(
    request: Request,
    user: User = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service),
) -> Response:
    """List every book in insertion order."""
    books = book_service.list_books(user)
    return render(request, "book/index.html", {"books": books})


@router.get("/new")
def new_book_form(
    request: Request,
    user: User = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service),
) -> Response:
    book_service.authorize(user, Action.CREATE)
    return _form_page(request, "book/new.html", {"title": "", "price": ""})


@router.post("/new", dependencies=[Depends(require_csrf)])
def create_book(
    request: Request,
    title: str = Form(""),
    price: str = Form(""),
    cover: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service),
) -> Response:
    submission = BookSubmission(
        title=title, price_text=price, cover=to_cover_upload(cover)
    )
    values = {"title": title, "price": price}
    try:
        book_service.create_book(user, submission)
    except ValidationError as e:
        return _form_page(
            request,
            "book/new.html",
            values,
            errors=e.errors,
            status_code=422,
        )
    except StorageError as e:
        logger.error("Could not store cover for new book: {}", e)
        return _form_page(
            request,
            "book/new.html",
            values,
            page_error="Não foi possível salvar a capa. Tente novamente.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    return _redirect_to_index()


@router.get("/{book_id}")
def show_book(
    request: Request,
    book_id: str,
    user: User = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service),
) -> Response:
    book = book_service.get_book(user, book_id)
    return render(request, "book/show.html", {"book": book})


@router.get("/{book_id}/edit")
def edit_book_form(
    request: Request,
    book_id: str,
    user: User = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service),
) -> Response:
    book_service.authorize(user, Action.EDIT)
    book = book_service.get_book(user, book_id)
    values = {"title": book.title, "price": format_price(book.price_in_cents)}
    return _form_page(request, "book/edit.html", values, book=book)


@router.post("/{book_id}/edit", dependencies=[Depends(require_csrf)])
def update_book(
    request: Request,
    book_id: str,
    title: str = Form(""),
    price: str = Form(""),
    cover: UploadFile | None = File(None),
    user: User = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service),
) -> Response:
    # A blank price on the edit form keeps the stored one
    submission = BookSubmission(
        title=title,
        price_text=price if price.strip() else None,
        cover=to_cover_upload(cover),
    )
    try:
        book_service.update_book(user, book_id, submission)
    except (ValidationError, StorageError) as e:
        book = book_service.get_book(user, book_id)
        values = {"title": title, "price": price}
        if isinstance(e, ValidationError):
            return _form_page(
                request,
                "book/edit.html",
                values,
                errors=e.errors,
                status_code=422,
                book=book,
            )
        logger.error("Could not store cover for book {}: {}", book_id, e)
        return _form_page(
            request,
            "book/edit.html",
            values,
            page_error="Não foi possível salvar a capa. Tente novamente.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            book=book,
        )
    return _redirect_to_index()


@router.post("/{book_id}/delete", dependencies=[Depends(require_csrf)])
def delete_book(
    book_id: str,
    user: User = Depends(get_current_user),
    book_service: BookService = Depends(get_book_service),
) -> RedirectResponse:
    book_service.delete_book(user, book_id)
    return _redirect_to_index()
