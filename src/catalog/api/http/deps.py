"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from src.catalog.api.http.app_data import ApplicationDependencies
from src.catalog.core.errors import AuthenticationError
from src.catalog.core.security import extract_client_fingerprint, validate_csrf_token
from src.catalog.core.services import (
    BookService,
    CoverStorage,
    UserService,
    UserSessionService,
)
from src.catalog.entities.core.user import User, UserRepository
from src.catalog.runtime.config.config_data import ConfigData


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_app_config(request: Request) -> ConfigData:
    """Get the configuration the running app was built with."""
    return get_app_dependencies(request).config


def get_db_session(request: Request) -> Iterator[Session]:
    """Open a database session for the duration of one request."""
    db = get_app_dependencies(request).database_service.get_session()
    try:
        yield db
    finally:
        db.close()


def get_user_session_service(request: Request) -> UserSessionService:
    """Get the User Session service instance."""
    return get_app_dependencies(request).user_session_service


def get_cover_storage(request: Request) -> CoverStorage:
    return get_app_dependencies(request).cover_storage


def get_user_service(db: Session = Depends(get_db_session)) -> UserService:
    return UserService(db)


def get_book_service(
    request: Request,
    db: Session = Depends(get_db_session),
    cover_storage: CoverStorage = Depends(get_cover_storage),
) -> BookService:
    config = get_app_config(request)
    return BookService(db, cover_storage, config.security.admin_role)


async def get_optional_user(
    request: Request,
    db: Session = Depends(get_db_session),
    user_session_service: UserSessionService = Depends(get_user_session_service),
) -> User | None:
    """Resolve the session cookie to a user, or None for anonymous requests.

    The resolved user and session id are stored on ``request.state`` so
    templates and CSRF checks can reach them.
    """
    config = get_app_config(request)
    session_id = request.cookies.get(config.security.session_cookie_name)
    if not session_id:
        return None

    fingerprint = (
        extract_client_fingerprint(request)
        if config.security.enable_client_fingerprinting
        else None
    )
    user_session = await user_session_service.validate_user_session(
        session_id, fingerprint
    )
    if not user_session:
        return None

    user = await run_in_threadpool(UserRepository(db).get, user_session.user_id)
    if user is None:
        await user_session_service.delete_user_session(session_id)
        return None

    request.state.session_id = session_id
    request.state.user = user
    return user


async def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    """Require an authenticated user.

    Raises:
        AuthenticationError: mapped to a login redirect for pages and 401 for
            the JSON API.
    """
    if user is None:
        raise AuthenticationError("Authentication required")
    return user


def csrf_enforced(config: ConfigData) -> bool:
    return config.app.environment not in ("development", "test")


async def require_csrf(request: Request) -> None:
    """Check the CSRF token of a state-changing request.

    Forms send the token in a hidden field, API clients in the
    ``X-CSRF-Token`` header. Skipped in development and test.
    """
    if request.method not in {"POST", "PUT", "PATCH", "DELETE"}:
        return

    config = get_app_config(request)
    if not csrf_enforced(config):
        return

    session_id = request.cookies.get(config.security.session_cookie_name)
    if not session_id:
        raise AuthenticationError("No session found")

    token = request.headers.get("x-csrf-token")
    if not token:
        form = await request.form()
        value = form.get(config.security.csrf_field_name)
        token = value if isinstance(value, str) else None

    if not validate_csrf_token(
        session_id,
        token,
        config.app.session_signing_secret,
        config.security.csrf_token_max_age_hours,
    ):
        raise HTTPException(status_code=403, detail="Invalid CSRF token")


async def enforce_login_rate_limit(request: Request) -> None:
    await get_app_dependencies(request).login_limiter(request)
