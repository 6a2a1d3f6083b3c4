"""Login throttling."""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict, deque

from fastapi import HTTPException, Request
from loguru import logger

from src.catalog.runtime.config.config_data import RateLimiterConfig


class LoginRateLimiter:
    """In-memory sliding-window limiter keyed by client IP."""

    def __init__(self, times: int, milliseconds: int, enabled: bool = True) -> None:
        self._hits: defaultdict[str, deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._times = times
        self._seconds = milliseconds / 1000
        self._enabled = enabled
        self._last_cleanup = time.monotonic()
        self._cleanup_interval = 60.0

    @classmethod
    def from_config(cls, config: RateLimiterConfig) -> LoginRateLimiter:
        return cls(config.login_requests, config.login_window_ms, config.enabled)

    async def __call__(self, request: Request) -> None:
        if not self._enabled:
            return
        client_host = request.client.host if request.client else "anonymous"
        await self._throttle(f"ip:{client_host}:{request.url.path}")

    def _cleanup_old_keys(self, now: float) -> None:
        if now - self._last_cleanup < self._cleanup_interval:
            return

        self._last_cleanup = now
        stale = []
        for key, hits in self._hits.items():
            while hits and hits[0] <= now - self._seconds:
                hits.popleft()
            if not hits:
                stale.append(key)
        for key in stale:
            del self._hits[key]

    async def _throttle(self, key: str) -> None:
        now = time.monotonic()
        window_start = now - self._seconds
        async with self._lock:
            self._cleanup_old_keys(now)
            hits = self._hits[key]
            while hits and hits[0] <= window_start:
                hits.popleft()
            if len(hits) >= self._times:
                retry_after = max(0, int(self._seconds - (now - hits[0])))
                logger.warning("Login throttled for {}", key)
                raise HTTPException(
                    status_code=429,
                    detail="Too Many Requests",
                    headers={"Retry-After": str(retry_after)},
                )
            hits.append(now)

    async def reset(self) -> None:
        async with self._lock:
            self._hits.clear()
