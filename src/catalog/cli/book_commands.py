"""Book catalog CLI commands."""

from pathlib import Path

import typer
from rich.table import Table

from src.catalog.core.errors import CatalogError
from src.catalog.core.pricing import format_price
from src.catalog.core.services import (
    BookService,
    BookSubmission,
    CoverStorage,
    CoverUpload,
    UserService,
)
from src.catalog.entities.service.book import BookRepository
from src.catalog.runtime.context import get_config

from .utils import console, get_database_service

books_app = typer.Typer(help="Inspect and seed the book catalog")


@books_app.command("list")
def list_books() -> None:
    """List all books in insertion order."""
    with get_database_service().session_scope() as session:
        books = BookRepository(session).list_all()

    table = Table(title="Books")
    table.add_column("ID", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Price", style="yellow", justify="right")
    table.add_column("Cover", style="magenta")
    for book in books:
        table.add_row(
            book.id,
            book.title,
            format_price(book.price_in_cents),
            book.cover_path or "-",
        )

    console.print(table)
    console.print(f"\n[green]{len(books)} books[/green]")


@books_app.command("add")
def add_book(
    title: str = typer.Argument(..., help="Book title"),
    price: str = typer.Argument(..., help="Price with a decimal comma, e.g. 10,99"),
    actor_email: str = typer.Option(
        ..., "--as", help="E-mail of the administrator recording the book"
    ),
    cover: Path | None = typer.Option(
        None, "--cover", "-c", exists=True, dir_okay=False, help="Cover image"
    ),
) -> None:
    """Add a book on behalf of an administrator."""
    config = get_config()
    with get_database_service().session_scope() as session:
        actor = UserService(session).find_by_email(actor_email)
        if actor is None:
            console.print(f"[red]❌ Unknown user {actor_email}[/red]")
            raise typer.Exit(code=1)

        service = BookService(
            session, CoverStorage(config.storage), config.security.admin_role
        )
        try:
            if cover is None:
                book = service.create_book(
                    actor, BookSubmission(title=title, price_text=price)
                )
            else:
                with cover.open("rb") as stream:
                    upload = CoverUpload(filename=cover.name, stream=stream)
                    book = service.create_book(
                        actor,
                        BookSubmission(title=title, price_text=price, cover=upload),
                    )
        except CatalogError as e:
            errors = getattr(e, "errors", None) or {"book": e.message}
            for field, message in errors.items():
                console.print(f"[red]❌ {field}: {message}[/red]")
            raise typer.Exit(code=1) from e

    console.print(f"[green]✅ Added {book.title} ({book.id})[/green]")
