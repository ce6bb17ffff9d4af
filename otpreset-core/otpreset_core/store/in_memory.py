"""
In-Memory Store
===============
Single-process store for development and testing.
"""

import time
from typing import Callable, Dict, Optional, Tuple
import structlog

from .base import KeyValueStore

logger = structlog.get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class InMemoryStore(KeyValueStore):
    """
    Dict-backed expiring store.

    For development and testing only. State lives in this process, so it
    is never shared across instances; use RedisStore in production.
    """

    backend = "memory"

    def __init__(self, clock: Optional[Callable[[], int]] = None, sweep_every: int = 100):
        """
        Args:
            clock: Returns current time in epoch milliseconds
            sweep_every: Run a full expiry sweep after this many writes
        """
        self._clock = clock if clock is not None else _now_ms
        self._sweep_every = sweep_every
        self._writes = 0
        self._data: Dict[str, Tuple[bytes, int]] = {}
        logger.warning(
            "in_memory_store_active",
            detail="OTP state is process-local and not shared across instances",
        )

    def _live(self, key: str) -> Optional[Tuple[bytes, int]]:
        item = self._data.get(key)
        if item is None:
            return None
        if item[1] <= self._clock():
            del self._data[key]
            return None
        return item

    async def get(self, key: str) -> Optional[bytes]:
        item = self._live(key)
        return item[0] if item else None

    async def set_with_expiry(self, key: str, value: bytes, ttl_ms: int) -> None:
        if ttl_ms <= 0:
            raise ValueError("ttl_ms must be positive")
        self._data[key] = (bytes(value), self._clock() + ttl_ms)
        self._writes += 1
        if self._writes % self._sweep_every == 0:
            self.sweep()

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def remaining_ttl(self, key: str) -> Optional[int]:
        item = self._live(key)
        if item is None:
            return None
        return item[1] - self._clock()

    def sweep(self) -> int:
        """Remove expired keys. Returns the number removed."""
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._data.items() if expires_at <= now]
        for key in expired:
            del self._data[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._data)
