"""Main CLI application module."""

import typer

from .book_commands import books_app
from .db_commands import db_app
from .serve_commands import serve
from .user_commands import users_app

app = typer.Typer(
    help="📚 Catalog CLI - database, users and books",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(db_app, name="db")
app.add_typer(users_app, name="users")
app.add_typer(books_app, name="books")
app.command("serve")(serve)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
