"""User management CLI commands."""

import typer
from rich.table import Table

from src.catalog.core.errors import ValidationError
from src.catalog.core.services import UserService
from src.catalog.runtime.context import get_config

from .utils import console, get_database_service

users_app = typer.Typer(help="Manage catalog users")


@users_app.command("list")
def list_users() -> None:
    """List all users."""
    with get_database_service().session_scope() as session:
        users = UserService(session).list_users()

    if not users:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(title="Users")
    table.add_column("ID", style="cyan")
    table.add_column("Email", style="blue")
    table.add_column("Roles", style="magenta")
    table.add_column("Verified", style="yellow")
    for user in users:
        table.add_row(
            user.id,
            user.email,
            ", ".join(user.roles),
            "✅" if user.verified else "❌",
        )

    console.print(table)
    console.print(f"\n[green]Found {len(users)} users[/green]")


@users_app.command("add")
def add_user(
    email: str = typer.Argument(..., help="Login e-mail address"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, help="Password"
    ),
    admin: bool = typer.Option(
        False, "--admin/--no-admin", help="Grant the administrator role"
    ),
    verified: bool = typer.Option(
        True, "--verified/--unverified", help="Mark the e-mail as verified"
    ),
) -> None:
    """Add a new user."""
    roles = [get_config().security.admin_role] if admin else []
    try:
        with get_database_service().session_scope() as session:
            user = UserService(session).register(
                email, password, roles=roles, verified=verified
            )
    except ValidationError as e:
        for field, message in e.errors.items():
            console.print(f"[red]❌ {field}: {message}[/red]")
        raise typer.Exit(code=1) from e

    console.print(f"[green]✅ Created user {user.email} ({user.id})[/green]")
