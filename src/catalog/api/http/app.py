"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager
from urllib.parse import quote

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from src.catalog.api.http.app_data import ApplicationDependencies
from src.catalog.api.http.middleware.limiter import LoginRateLimiter
from src.catalog.api.http.routers import auth, health
from src.catalog.api.http.routers.service import book, book_api
from src.catalog.api.http.templating import render
from src.catalog.api.utils.app_startup import configure_logging
from src.catalog.core.errors import (
    AuthenticationError,
    CatalogError,
    ValidationError,
)
from src.catalog.core.services import (
    CoverStorage,
    DbManageService,
    DbSessionService,
    UserSessionService,
)
from src.catalog.core.storage.session_storage import create_session_storage
from src.catalog.runtime.config.config_data import ConfigData
from src.catalog.runtime.context import get_config

API_PREFIX = "/api"

_ERROR_TITLES = {
    403: "Acesso negado",
    404: "Página não encontrada",
    422: "Dados inválidos",
    500: "Erro interno",
    503: "Serviço indisponível",
}


# --- Security middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, production: bool = False) -> None:
        super().__init__(app)
        self._production = production

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )
        if self._production:
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return response


async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    xff = request.headers.get("x-forwarded-for")
    client_ip = (
        xff.split(",")[0].strip()
        if xff
        else request.client.host
        if request.client
        else "unknown"
    )

    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip,
    }

    start = time.perf_counter()
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error", "request_id": request_id},
                headers={"X-Request-ID": request_id},
            )

        duration_ms = (time.perf_counter() - start) * 1000
        logger.bind(
            status_code=response.status_code,
            duration_ms=round(duration_ms, 1),
        ).info("request.end")
        response.headers.setdefault("X-Request-ID", request_id)
        return response


def _wants_json(request: Request) -> bool:
    return request.url.path.startswith(API_PREFIX)


async def handle_catalog_error(request: Request, exc: CatalogError) -> Response:
    """Map domain errors to JSON for the API and to pages for the browser."""
    if exc.status_code >= 500:
        logger.error("{} failure: {}", type(exc).__name__, exc)

    if _wants_json(request):
        content: dict = {"detail": exc.message}
        if isinstance(exc, ValidationError):
            content["errors"] = exc.errors
        return JSONResponse(status_code=exc.status_code, content=content)

    if isinstance(exc, AuthenticationError):
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"
        return RedirectResponse(f"/login?next={quote(target, safe='')}", status_code=303)

    return render(
        request,
        "errors/error.html",
        {
            "status_code": exc.status_code,
            "title": _ERROR_TITLES.get(exc.status_code, "Erro"),
            "message": exc.message if exc.status_code < 500 else None,
        },
        status_code=exc.status_code,
    )


async def build_dependencies(config: ConfigData) -> ApplicationDependencies:
    """Create the long-lived services the routers share."""
    database_service = DbSessionService(config)
    DbManageService(database_service.engine).create_all()

    session_storage = await create_session_storage(config.redis)
    cover_storage = CoverStorage(config.storage)
    cover_storage.directory.mkdir(parents=True, exist_ok=True)

    return ApplicationDependencies(
        config=config,
        database_service=database_service,
        session_storage=session_storage,
        user_session_service=UserSessionService(
            session_storage, config.app.session_max_age
        ),
        cover_storage=cover_storage,
        login_limiter=LoginRateLimiter.from_config(config.rate_limiter),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests install their own dependencies before the app starts
    owned = getattr(app.state, "app_dependencies", None) is None
    if owned:
        app.state.app_dependencies = await build_dependencies(app.state.config)

    deps: ApplicationDependencies = app.state.app_dependencies
    logger.info(
        "Starting up application in {} environment", deps.config.app.environment
    )
    try:
        yield
    finally:
        logger.info("Shutting down application")
        await deps.user_session_service.purge_expired()
        if owned:
            deps.database_service.dispose()


def create_app(config: ConfigData | None = None) -> FastAPI:
    """Build the application for ``config`` (the active context config by default)."""
    config = config or get_config()
    config.validate_runtime()
    configure_logging(config)

    production = config.app.environment == "production"
    app = FastAPI(
        title="Catálogo de Livros",
        lifespan=lifespan,
        docs_url=None if production else "/docs",
        redoc_url=None if production else "/redoc",
    )
    app.state.config = config

    app.add_middleware(SecurityHeadersMiddleware, production=production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.app.cors.origins,
        allow_credentials=config.app.cors.allow_credentials,
        allow_methods=config.app.cors.allow_methods,
        allow_headers=config.app.cors.allow_headers,
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(CatalogError, handle_catalog_error)

    app.include_router(auth.router)
    app.include_router(health.router)
    app.include_router(book.router)
    app.include_router(book_api.router)

    app.mount(
        config.storage.covers_url_prefix.rstrip("/"),
        StaticFiles(directory=config.storage.covers_dir, check_dir=False),
        name="covers",
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=app.state.config.app.host,
        port=app.state.config.app.port,
        access_log=False,
    )
