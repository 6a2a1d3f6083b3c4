"""Unit tests for session storage and the login session service."""

import re
import time

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.catalog.core.errors import SessionStoreError
from src.catalog.core.models import UserSession
from src.catalog.core.services import (
    InMemorySessionStorage,
    RedisSessionStorage,
    UserSessionService,
)


@pytest.fixture
def storage() -> InMemorySessionStorage:
    return InMemorySessionStorage()


@pytest.fixture
def user_session_service(storage: InMemorySessionStorage) -> UserSessionService:
    return UserSessionService(storage, session_max_age=3600)


class TestInMemorySessionStorage:
    @pytest.mark.asyncio
    async def test_set_and_get(self, storage: InMemorySessionStorage):
        session = UserSession.create("sid", "user-1", "fp")

        await storage.set("user:sid", session, 60)

        assert await storage.exists("user:sid")
        loaded = await storage.get("user:sid", UserSession)
        assert loaded == session

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, storage: InMemorySessionStorage, monkeypatch):
        await storage.set("user:sid", UserSession.create("sid", "u", "fp"), 1)
        later = time.time() + 5
        monkeypatch.setattr(time, "time", lambda: later)

        assert await storage.get("user:sid", UserSession) is None
        assert not await storage.exists("user:sid")

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, storage: InMemorySessionStorage, monkeypatch):
        await storage.set("a", UserSession.create("a", "u", "fp"), 1)
        await storage.set("b", UserSession.create("b", "u", "fp"), 100)
        later = time.time() + 5
        monkeypatch.setattr(time, "time", lambda: later)

        assert await storage.cleanup_expired() == 1
        assert await storage.exists("b")

    @pytest.mark.asyncio
    async def test_writes_sweep_abandoned_sessions(
        self, storage: InMemorySessionStorage, monkeypatch
    ):
        await storage.set("abandoned", UserSession.create("a", "u", "fp"), 1)
        later = time.time() + 120
        monkeypatch.setattr(time, "time", lambda: later)

        await storage.set("fresh", UserSession.create("f", "u", "fp"), 60)

        # Nothing left to purge: the write already dropped the expired entry
        assert await storage.cleanup_expired() == 0
        assert await storage.exists("fresh")

    @pytest.mark.asyncio
    async def test_no_sweep_before_interval(self, monkeypatch):
        storage = InMemorySessionStorage(cleanup_interval=600)
        await storage.set("abandoned", UserSession.create("a", "u", "fp"), 1)
        later = time.time() + 120
        monkeypatch.setattr(time, "time", lambda: later)

        await storage.set("fresh", UserSession.create("f", "u", "fp"), 60)

        assert await storage.cleanup_expired() == 1


class TestUserSessionService:
    @pytest.mark.asyncio
    async def test_create_and_validate(self, user_session_service: UserSessionService):
        session_id = await user_session_service.create_user_session("user-1", "fp")

        session = await user_session_service.validate_user_session(session_id, "fp")

        assert session is not None
        assert session.user_id == "user-1"
        assert session.expires_at - session.created_at == 3600

    @pytest.mark.asyncio
    async def test_session_ids_are_random_url_safe_tokens(
        self, user_session_service: UserSessionService
    ):
        first = await user_session_service.create_user_session("user-1", "fp")
        second = await user_session_service.create_user_session("user-1", "fp")

        assert first != second
        assert len(first) == 43
        assert re.fullmatch(r"[A-Za-z0-9_-]+", first)

    @pytest.mark.asyncio
    async def test_fingerprint_mismatch_drops_session(
        self, user_session_service: UserSessionService
    ):
        session_id = await user_session_service.create_user_session("user-1", "fp")

        assert await user_session_service.validate_user_session(session_id, "other") is None
        assert await user_session_service.get_user_session(session_id) is None

    @pytest.mark.asyncio
    async def test_fingerprint_check_can_be_skipped(
        self, user_session_service: UserSessionService
    ):
        session_id = await user_session_service.create_user_session("user-1", "fp")

        assert await user_session_service.validate_user_session(session_id, None)

    @pytest.mark.asyncio
    async def test_expired_session(
        self, user_session_service: UserSessionService, storage: InMemorySessionStorage
    ):
        expired = UserSession.create("old", "user-1", "fp", session_max_age=-10)
        await storage.set("user:old", expired, 60)

        assert await user_session_service.get_user_session("old") is None
        assert not await storage.exists("user:old")

    @pytest.mark.asyncio
    async def test_delete(self, user_session_service: UserSessionService):
        session_id = await user_session_service.create_user_session("user-1", "fp")

        await user_session_service.delete_user_session(session_id)

        assert await user_session_service.get_user_session(session_id) is None


class UnreachableRedis:
    """Redis client whose every command fails to connect."""

    async def _fail(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")

    setex = get = delete = exists = ping = _fail


class TestRedisSessionStorage:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["get", "exists", "delete"])
    async def test_outage_raises_session_store_error(self, operation: str):
        storage = RedisSessionStorage(UnreachableRedis())

        with pytest.raises(SessionStoreError) as exc_info:
            if operation == "get":
                await storage.get("user:sid", UserSession)
            else:
                await getattr(storage, operation)("user:sid")

        assert exc_info.value.status_code == 503
        assert not storage.is_available()

    @pytest.mark.asyncio
    async def test_outage_on_write(self):
        storage = RedisSessionStorage(UnreachableRedis())

        with pytest.raises(SessionStoreError):
            await storage.set("user:sid", UserSession.create("sid", "u", "fp"), 60)

    @pytest.mark.asyncio
    async def test_ping_reports_outage(self):
        assert await RedisSessionStorage(UnreachableRedis()).ping() is False
