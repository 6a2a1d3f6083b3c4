from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from sqlmodel import Session
from starlette.requests import Request

from src.catalog.core.services import (
    BookService,
    CoverStorage,
    DbManageService,
    DbSessionService,
)
from src.catalog.entities.service.book import Book, BookRepository
from src.catalog.runtime.config.config_data import (
    AppConfig,
    ConfigData,
    DatabaseConfig,
    LoggingConfig,
    RateLimiterConfig,
    StorageConfig,
)

ADMIN_ROLE = "ROLE_ADMIN"

# Smallest byte sequence that starts and ends like a JPEG
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 64 + b"\xff\xd9"


@pytest.fixture
def test_config(tmp_path: Path) -> ConfigData:
    """Configuration pointing the database and covers at a scratch directory."""
    return ConfigData(
        app=AppConfig(environment="test"),
        database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'catalog.db'}"),
        storage=StorageConfig(covers_dir=str(tmp_path / "covers"), max_cover_size_mb=1),
        logging=LoggingConfig(level="WARNING"),
        rate_limiter=RateLimiterConfig(login_requests=1000),
    )


@pytest.fixture
def db_service(test_config: ConfigData) -> Generator[DbSessionService]:
    """Database service with all tables created."""
    service = DbSessionService(test_config)
    DbManageService(service.engine).create_all()
    yield service
    service.dispose()


@pytest.fixture
def session(db_service: DbSessionService) -> Generator[Session]:
    """Create a fresh database session for testing."""
    db = db_service.get_session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def covers_dir(test_config: ConfigData) -> Path:
    return Path(test_config.storage.covers_dir)


@pytest.fixture
def cover_storage(test_config: ConfigData) -> CoverStorage:
    return CoverStorage(test_config.storage)


@pytest.fixture
def cover_bytes() -> bytes:
    return JPEG_BYTES


@pytest.fixture
def book_service(session: Session, cover_storage: CoverStorage) -> BookService:
    return BookService(session, cover_storage, ADMIN_ROLE)


@pytest.fixture
def make_book(db_service: DbSessionService) -> Callable[..., Book]:
    """Insert a book directly through the repository, bypassing the access policy."""

    def _make_book(
        title: str = "Value", price_in_cents: int = 1000, cover_path: str | None = None
    ) -> Book:
        with db_service.session_scope() as db:
            return BookRepository(db).create(
                Book(title=title, price_in_cents=price_in_cents, cover_path=cover_path)
            )

    return _make_book


@pytest.fixture
def books_in_db(db_service: DbSessionService) -> Callable[[], list[Book]]:
    """Read the stored books with a session independent of the one under test."""

    def _books() -> list[Book]:
        with db_service.session_scope() as db:
            return BookRepository(db).list_all()

    return _books


@pytest.fixture
def request_factory() -> Callable[[dict[str, str]], Request]:
    def _make_request(headers: dict[str, str]) -> Request:
        scope = {
            "type": "http",
            "headers": [
                (name.lower().encode("ascii"), value.encode("latin-1"))
                for name, value in headers.items()
            ],
            "method": "GET",
            "path": "/",
            "query_string": b"",
        }
        return Request(scope)

    return _make_request
