"""Session storage interface and implementations.

Sessions live in Redis when it is configured and reachable, and in process
memory otherwise.
"""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from typing import Any, TypeVar

import redis.asyncio as redis_async
from loguru import logger
from pydantic import BaseModel
from redis.exceptions import RedisError

from src.catalog.core.errors import SessionStoreError
from src.catalog.runtime.config.config_data import RedisConfig

T = TypeVar("T", bound=BaseModel)


class SessionStorage(ABC):
    """Abstract interface for session storage backends."""

    @abstractmethod
    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        """Store a session with TTL."""

    @abstractmethod
    async def get(self, key: str, model_class: type[T]) -> T | None:
        """Retrieve a session, or None if it is missing or expired."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a session."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a session exists and has not expired."""

    @abstractmethod
    async def cleanup_expired(self) -> int:
        """Remove expired sessions and return how many were removed."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the storage backend is healthy."""


class InMemorySessionStorage(SessionStorage):
    """In-memory session storage with TTL support.

    Expired entries are swept on writes at most once per ``cleanup_interval``
    seconds, so abandoned sessions do not accumulate.
    """

    def __init__(self, cleanup_interval: float = 60.0) -> None:
        self._data: dict[str, dict[str, Any]] = {}
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = time.time()

    def _sweep(self, now: float) -> int:
        self._last_cleanup = now
        expired_keys = [
            key for key, entry in self._data.items() if now > entry["expires_at"]
        ]
        for key in expired_keys:
            del self._data[key]
        return len(expired_keys)

    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        now = time.time()
        if now - self._last_cleanup >= self._cleanup_interval:
            self._sweep(now)
        self._data[key] = {
            "data": json.loads(value.model_dump_json()),
            "expires_at": now + ttl_seconds,
        }

    async def get(self, key: str, model_class: type[T]) -> T | None:
        entry = self._data.get(key)
        if entry is None:
            return None

        if time.time() > entry["expires_at"]:
            del self._data[key]
            return None

        return model_class.model_validate(entry["data"])

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def exists(self, key: str) -> bool:
        entry = self._data.get(key)
        if entry is None:
            return False
        if time.time() > entry["expires_at"]:
            del self._data[key]
            return False
        return True

    async def cleanup_expired(self) -> int:
        return self._sweep(time.time())

    def is_available(self) -> bool:
        return True


class RedisSessionStorage(SessionStorage):
    """Redis-based session storage; Redis expires keys on its own.

    Connection failures surface as ``SessionStoreError`` (503).
    """

    def __init__(self, redis_client: redis_async.Redis) -> None:
        self._redis = redis_client
        self._available = True

    async def set(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        try:
            await self._redis.setex(key, ttl_seconds, value.model_dump_json())
            self._available = True
        except RedisError as e:
            self._available = False
            raise SessionStoreError(f"Redis set failed: {e}") from e

    async def get(self, key: str, model_class: type[T]) -> T | None:
        try:
            data = await self._redis.get(key)
        except RedisError as e:
            self._available = False
            raise SessionStoreError(f"Redis get failed: {e}") from e

        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return model_class.model_validate_json(data)

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except RedisError as e:
            self._available = False
            raise SessionStoreError(f"Redis delete failed: {e}") from e

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self._redis.exists(key))
        except RedisError as e:
            self._available = False
            raise SessionStoreError(f"Redis exists failed: {e}") from e

    async def cleanup_expired(self) -> int:
        return 0

    def is_available(self) -> bool:
        return self._available

    async def ping(self) -> bool:
        """Test Redis connection health."""
        try:
            await self._redis.ping()
            self._available = True
        except RedisError:
            self._available = False
        return self._available


async def create_session_storage(config: RedisConfig) -> SessionStorage:
    """Connect to Redis when configured, falling back to in-memory storage."""
    if not config.enabled or not config.url:
        logger.info("Redis not configured; using in-memory session storage")
        return InMemorySessionStorage()

    client = redis_async.from_url(
        config.connection_string,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=2,
    )
    storage = RedisSessionStorage(client)
    if await storage.ping():
        logger.info("Session storage: Redis connected")
        return storage

    logger.warning("Redis unavailable, using in-memory session storage")
    return InMemorySessionStorage()
