"""Helpers shared by the CLI command groups."""

from rich.console import Console

from src.catalog.core.services import DbSessionService
from src.catalog.runtime.context import get_config

console = Console()


def get_database_service() -> DbSessionService:
    return DbSessionService(get_config())
