"""Login and logout pages backed by server-side sessions."""

from typing import Any

from fastapi import APIRouter, Depends, Form, Query, Request, status
from fastapi.responses import RedirectResponse
from loguru import logger
from starlette.concurrency import run_in_threadpool
from starlette.responses import Response

from src.catalog.api.http.deps import (
    enforce_login_rate_limit,
    get_app_config,
    get_optional_user,
    get_user_service,
    get_user_session_service,
    require_csrf,
)
from src.catalog.api.http.templating import render
from src.catalog.core.errors import AuthenticationError
from src.catalog.core.security import extract_client_fingerprint, sanitize_return_url
from src.catalog.core.services import UserService, UserSessionService
from src.catalog.entities.core.user import User
from src.catalog.runtime.config.config_data import ConfigData

router = APIRouter(tags=["auth"])

DEFAULT_LANDING = "/book/"


def _cookie_settings(config: ConfigData) -> dict[str, Any]:
    """Session cookies are never readable from JavaScript."""
    return {
        "httponly": True,
        "secure": config.security.secure_cookies
        and config.app.environment == "production",
        "samesite": config.security.cookie_samesite,
        "path": "/",
    }


@router.get("/")
def home() -> RedirectResponse:
    return RedirectResponse(DEFAULT_LANDING, status_code=status.HTTP_303_SEE_OTHER)


@router.get("/login")
def login_form(
    request: Request,
    next_url: str | None = Query(None, alias="next"),
    user: User | None = Depends(get_optional_user),
) -> Response:
    target = sanitize_return_url(next_url, DEFAULT_LANDING)
    if user is not None:
        return RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)
    return render(request, "auth/login.html", {"next": target, "email": "", "error": None})


@router.post("/login", dependencies=[Depends(enforce_login_rate_limit)])
async def login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    next_url: str = Form(DEFAULT_LANDING, alias="next"),
    config: ConfigData = Depends(get_app_config),
    user_service: UserService = Depends(get_user_service),
    user_session_service: UserSessionService = Depends(get_user_session_service),
) -> Response:
    target = sanitize_return_url(next_url, DEFAULT_LANDING)
    try:
        # bcrypt and the lookup block, keep them off the event loop
        user = await run_in_threadpool(user_service.authenticate, email, password)
    except AuthenticationError:
        return render(
            request,
            "auth/login.html",
            {"next": target, "email": email, "error": "E-mail ou senha inválidos."},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    session_id = await user_session_service.create_user_session(
        user.id, extract_client_fingerprint(request)
    )
    response = RedirectResponse(target, status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        key=config.security.session_cookie_name,
        value=session_id,
        max_age=config.app.session_max_age,
        **_cookie_settings(config),
    )
    return response


@router.post("/logout", dependencies=[Depends(require_csrf)])
async def logout(
    request: Request,
    config: ConfigData = Depends(get_app_config),
    user_session_service: UserSessionService = Depends(get_user_session_service),
) -> RedirectResponse:
    session_id = request.cookies.get(config.security.session_cookie_name)
    if session_id:
        await user_session_service.delete_user_session(session_id)
        logger.info("logout")

    response = RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(config.security.session_cookie_name, path="/")
    return response
