"""
Cache store contract and the in-process implementation.
"""

import time
from typing import Callable, Dict, Optional, Protocol, Tuple, runtime_checkable

from shared.errors import CacheUnavailable
from shared.logging import get_logger


@runtime_checkable
class CacheStore(Protocol):
    """Key-value store with per-key expiry holding opaque text payloads.

    Implementations raise ``CacheUnavailable`` from ``get`` and ``set`` when
    the store cannot be reached; absence is reported only as ``None``.
    """

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...

    async def get(self, key: str) -> Optional[str]:
        """Return the payload stored under ``key``, or None when absent or expired."""
        ...

    async def set(self, key: str, payload: str, ttl_seconds: int) -> None:
        """Store ``payload`` under ``key`` for ``ttl_seconds``."""
        ...

    async def ping(self) -> bool:
        ...


def validate_ttl(ttl_seconds: int) -> int:
    if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int) or ttl_seconds <= 0:
        raise CacheUnavailable(
            "TTL must be a positive integer number of seconds",
            details={"ttl_seconds": repr(ttl_seconds)}
        )
    return ttl_seconds


class InMemoryCacheStore:
    """Cache store kept in process memory.

    Intended for local runs and tests. ``clock`` returns seconds and can be
    replaced to move time forward deterministically.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.logger = get_logger("rates.cache.memory")
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}

    async def start(self) -> None:
        self.logger.info("In-memory cache store started")

    async def stop(self) -> None:
        self._entries.clear()
        self.logger.info("In-memory cache store stopped")

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        payload, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return payload

    async def set(self, key: str, payload: str, ttl_seconds: int) -> None:
        if not isinstance(payload, str):
            raise CacheUnavailable("Cache payloads must be text", details={"key": key})
        validate_ttl(ttl_seconds)
        now = self._clock()
        self._purge_expired(now)
        self._entries[key] = (payload, now + ttl_seconds)

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

    async def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        now = self._clock()
        return sum(1 for _, expires_at in self._entries.values() if expires_at > now)
