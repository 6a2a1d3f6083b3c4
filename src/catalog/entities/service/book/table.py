"""Book database table model."""

from sqlalchemy import BigInteger
from sqlmodel import Field

from src.catalog.entities.core._base import EntityTable


class BookTable(EntityTable, table=True):
    """Database persistence model for books.

    This represents how the Book entity is stored in the database.
    It's separate from the domain entity to maintain clean architecture
    while keeping related code together. ``position`` records insertion
    order and is assigned by the repository.
    """

    __tablename__ = "book"

    position: int | None = Field(default=None, unique=True, index=True)
    title: str = Field(max_length=255)
    price_in_cents: int = Field(ge=0, sa_type=BigInteger)
    cover_path: str | None = Field(default=None, max_length=255)
