"""Jinja2 environment shared by the HTML routers."""

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from src.catalog.core.policy import Action, is_allowed
from src.catalog.core.pricing import format_price
from src.catalog.core.security import generate_csrf_token

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["price"] = format_price


def render(
    request: Request,
    template_name: str,
    context: dict[str, Any] | None = None,
    status_code: int = 200,
) -> Response:
    """Render a page with the signed-in user, permissions and CSRF token."""
    config = request.app.state.app_dependencies.config
    user = getattr(request.state, "user", None)
    session_id = getattr(request.state, "session_id", None)

    def can(action: str) -> bool:
        if user is None:
            return False
        return is_allowed(user.roles, Action(action), config.security.admin_role)

    page: dict[str, Any] = {
        "current_user": user,
        "can": can,
        "covers_url": config.storage.covers_url_prefix.rstrip("/"),
        "csrf_field": config.security.csrf_field_name,
        "csrf_token": (
            generate_csrf_token(session_id, config.app.session_signing_secret)
            if session_id
            else ""
        ),
    }
    page.update(context or {})
    return templates.TemplateResponse(
        request, template_name, page, status_code=status_code
    )
