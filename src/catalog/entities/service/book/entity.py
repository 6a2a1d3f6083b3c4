"""Entity: Book."""

from typing import Any

from pydantic import Field

from src.catalog.entities.core._base import Entity

# 999.999.999,99
MAX_PRICE_IN_CENTS = 99_999_999_999


class Book(Entity):
    """Book entity representing a catalog record.

    The price is held in integer cents. ``cover_path`` is the stored name of
    the cover image relative to the covers directory, or ``None`` when the
    book has no cover.
    """

    title: str = Field(min_length=1, max_length=255, description="Title")
    price_in_cents: int = Field(
        ge=0, le=MAX_PRICE_IN_CENTS, description="Price in cents"
    )
    cover_path: str | None = Field(default=None, description="Stored cover file name")

    @property
    def has_cover(self) -> bool:
        return self.cover_path is not None

    def __eq__(self, other: Any) -> bool:
        """Compare books by business attributes, ignoring timestamps."""
        if not isinstance(other, Book):
            return False

        return (
            self.id == other.id
            and self.title == other.title
            and self.price_in_cents == other.price_in_cents
            and self.cover_path == other.cover_path
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((self.id, self.title, self.price_in_cents, self.cover_path))
