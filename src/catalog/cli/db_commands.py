"""Database management commands."""

import typer
from rich.prompt import Confirm

from src.catalog.core.services import DbManageService

from .utils import console, get_database_service

db_app = typer.Typer(help="Manage the catalog database schema")


@db_app.command("init")
def init_db() -> None:
    """Create all tables that do not exist yet."""
    db_service = get_database_service()
    DbManageService(db_service.engine).create_all()
    console.print("[green]✅ Database tables created[/green]")


@db_app.command("reset")
def reset_db(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
) -> None:
    """Drop and recreate all tables. Every book and user is lost."""
    if not force and not Confirm.ask(
        "[yellow]This deletes all books and users. Continue?[/yellow]"
    ):
        console.print("Aborted.")
        raise typer.Exit(code=1)

    manager = DbManageService(get_database_service().engine)
    manager.drop_all()
    manager.create_all()
    console.print("[green]✅ Database reset[/green]")
