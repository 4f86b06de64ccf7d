"""
Redis-backed cache store.
"""

import asyncio
from typing import Any, Awaitable, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.errors import CacheUnavailable
from shared.logging import get_logger
from .stores import validate_ttl


class RedisCacheStore:
    """Cache store backed by Redis ``GET`` / ``SET EX``.

    Every call is bounded by ``timeout_seconds``; connection errors and
    timeouts surface as ``CacheUnavailable``.
    """

    def __init__(self, redis_url: str, timeout_seconds: float = 2.0, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.timeout_seconds = timeout_seconds
        self.logger = get_logger("rates.cache.redis")
        self.redis: Optional[redis.Redis] = client

    async def start(self):
        """Connect to Redis and verify the connection."""
        if self.redis is None:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.timeout_seconds,
                socket_timeout=self.timeout_seconds,
                health_check_interval=30
            )

        await self._call("ping", self.redis.ping())
        self.logger.info("Redis cache store started", redis_url=self.redis_url)

    async def stop(self):
        """Close the Redis connection pool."""
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None
            self.logger.info("Redis cache store stopped")

    async def get(self, key: str) -> Optional[str]:
        value = await self._call("get", self._client().get(key), key=key)
        if value is None:
            return None
        if isinstance(value, bytes):
            try:
                return value.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise CacheUnavailable("Cached value is not UTF-8 text", details={"key": key}) from exc
        return str(value)

    async def set(self, key: str, payload: str, ttl_seconds: int) -> None:
        validate_ttl(ttl_seconds)
        stored = await self._call("set", self._client().set(key, payload, ex=ttl_seconds), key=key)
        if not stored:
            raise CacheUnavailable("Redis did not acknowledge the write", details={"key": key})

    async def ping(self) -> bool:
        if self.redis is None:
            return False
        try:
            return bool(await self._call("ping", self.redis.ping()))
        except CacheUnavailable:
            return False

    def _client(self) -> redis.Redis:
        if self.redis is None:
            raise CacheUnavailable("Redis cache store is not started")
        return self.redis

    async def _call(self, operation: str, awaitable: Awaitable[Any], key: Optional[str] = None) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            self.logger.error("Redis call timed out", operation=operation, key=key, timeout=self.timeout_seconds)
            raise CacheUnavailable(
                f"Redis {operation} timed out",
                details={"operation": operation, "key": key, "timeout_seconds": self.timeout_seconds}
            ) from exc
        except (RedisError, OSError) as exc:
            self.logger.error("Redis call failed", operation=operation, key=key, error=str(exc))
            raise CacheUnavailable(
                f"Redis {operation} failed",
                details={"operation": operation, "key": key, "error": str(exc)}
            ) from exc
