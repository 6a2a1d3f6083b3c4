from dataclasses import dataclass

from src.catalog.api.http.middleware.limiter import LoginRateLimiter
from src.catalog.core.services import (
    CoverStorage,
    DbSessionService,
    UserSessionService,
)
from src.catalog.core.storage.session_storage import SessionStorage
from src.catalog.runtime.config.config_data import ConfigData


@dataclass
class ApplicationDependencies:
    config: ConfigData
    database_service: DbSessionService
    session_storage: SessionStorage
    user_session_service: UserSessionService
    cover_storage: CoverStorage
    login_limiter: LoginRateLimiter
