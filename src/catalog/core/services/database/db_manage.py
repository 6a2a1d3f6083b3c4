"""Schema management."""

from loguru import logger
from sqlalchemy import Engine
from sqlmodel import SQLModel

# Register tables with the metadata
from src.catalog.entities import BookTable, UserTable  # noqa: F401


class DbManageService:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def create_all(self) -> None:
        """Create all database tables."""
        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialized with tables.")

    def drop_all(self) -> None:
        SQLModel.metadata.drop_all(self._engine)
        logger.warning("Dropped all catalog tables.")
