"""User domain entity."""

from typing import Any

from pydantic import Field, field_validator

from src.catalog.entities.core._base import Entity


class User(Entity):
    """User entity representing a person who can sign in to the catalog.

    Only the bcrypt hash of the password is kept. ``roles`` holds role tags
    such as ``ROLE_ADMIN``.
    """

    email: str = Field(min_length=3, max_length=320, description="Login e-mail address")
    password_hash: str = Field(description="bcrypt password hash", repr=False)
    verified: bool = Field(default=False, description="Whether the e-mail was verified")
    roles: list[str] = Field(default_factory=list, description="Role tags")

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def __eq__(self, other: Any) -> bool:
        """Compare users by business attributes, ignoring timestamps."""
        if not isinstance(other, User):
            return False

        return (
            self.id == other.id
            and self.email == other.email
            and self.verified == other.verified
            and sorted(self.roles) == sorted(other.roles)
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((self.id, self.email, self.verified, tuple(sorted(self.roles))))
