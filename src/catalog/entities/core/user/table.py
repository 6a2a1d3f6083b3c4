"""User database table model."""

from sqlalchemy import JSON, Column
from sqlmodel import Field

from src.catalog.entities.core._base import EntityTable


class UserTable(EntityTable, table=True):
    """Database persistence model for users."""

    __tablename__ = "user_account"

    email: str = Field(max_length=320, unique=True, index=True)
    password_hash: str
    verified: bool = Field(default=False)
    roles: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
