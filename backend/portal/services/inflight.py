"""Reject a second mutation on a record while one is still outstanding.

Process-local by default; with ``REDIS_URL`` set the keys live in Redis so
every worker sees the same in-flight set.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from redis.asyncio import Redis

from portal.core.config import settings
from portal.core.exceptions import ProblemDetailError

KEY_PREFIX = "portal:inflight:"


class LocalInFlightGuard:
    def __init__(self) -> None:
        self._held: set[str] = set()

    async def acquire(self, key: str) -> bool:
        if key in self._held:
            return False
        self._held.add(key)
        return True

    async def release(self, key: str) -> None:
        self._held.discard(key)

    async def close(self) -> None:
        self._held.clear()


class RedisInFlightGuard:
    def __init__(self, redis: Redis, ttl: int = 30) -> None:
        self._redis = redis
        self._ttl = ttl

    async def acquire(self, key: str) -> bool:
        return bool(await self._redis.set(KEY_PREFIX + key, "1", nx=True, ex=self._ttl))

    async def release(self, key: str) -> None:
        await self._redis.delete(KEY_PREFIX + key)

    async def ping(self) -> bool:
        return bool(await self._redis.ping())

    async def close(self) -> None:
        await self._redis.aclose()


InFlightGuard = LocalInFlightGuard | RedisInFlightGuard


def build_guard() -> InFlightGuard:
    if not settings.REDIS_URL:
        return LocalInFlightGuard()

    return RedisInFlightGuard(Redis.from_url(settings.REDIS_URL), ttl=settings.INFLIGHT_TTL)


@asynccontextmanager
async def hold(guard: InFlightGuard, key: str) -> AsyncIterator[None]:
    """Hold ``key`` for the duration of the block or raise 409."""
    if not await guard.acquire(key):
        raise ProblemDetailError(
            status=409,
            title="Mutation In Progress",
            detail=f"Another change to {key} is still being processed",
        )
    try:
        yield
    finally:
        await guard.release(key)
