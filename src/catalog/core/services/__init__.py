"""Core services exports."""

# Session Storage for testing
from src.catalog.core.storage.session_storage import (
    InMemorySessionStorage,
    RedisSessionStorage,
)

# Book Services
from .books.book_service import BookService, BookSubmission
from .covers.cover_storage import CoverStorage, CoverUpload

# Database Services
from .database.db_manage import DbManageService
from .database.db_session import DbSessionService

# Session Services
from .session.user_session import UserSessionService

# User Services
from .users.user_service import UserService

__all__ = [
    # Book Services
    "BookService",
    "BookSubmission",
    "CoverStorage",
    "CoverUpload",
    # Session Services
    "UserSessionService",
    # User Services
    "UserService",
    # Session Storage for testing
    "InMemorySessionStorage",
    "RedisSessionStorage",
    # Database Services
    "DbManageService",
    "DbSessionService",
]
