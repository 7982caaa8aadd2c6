"""Counter stores backing the fixed-window rate limiter.

A store only knows how to atomically increment a key and forget it once its
window is over. Both implementations use the same key scheme, so switching
backends never changes limiter semantics.
"""

import heapq
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Tuple

from redis.asyncio import Redis
from structlog import get_logger

logger = get_logger(__name__)


class CounterStore(ABC):
    """Atomic increment-with-expiry storage."""

    @abstractmethod
    async def increment(self, key: str, expires_at_ms: int, now_ms: int) -> int:
        """Increment ``key`` and return the new count.

        Args:
            key: Counter key, unique per bucket, identity and window.
            expires_at_ms: Epoch milliseconds after which the key may be dropped.
            now_ms: Current epoch milliseconds as seen by the limiter.

        Returns:
            int: The count after this increment.
        """
        raise NotImplementedError


class InMemoryCounterStore(CounterStore):
    """Process-local counters guarded by a lock.

    Expired keys are evicted lazily from a min-heap of expiry times, so a
    write only touches the keys whose window has ended and memory stays
    proportional to the identities seen in the currently open windows.
    """

    def __init__(self) -> None:
        self._counters: Dict[str, Tuple[int, int]] = {}
        self._expiries: List[Tuple[int, str]] = []
        self._lock = threading.Lock()

    async def increment(self, key: str, expires_at_ms: int, now_ms: int) -> int:
        with self._lock:
            self._evict_expired(now_ms)
            entry = self._counters.get(key)
            if entry is None:
                count = 1
                heapq.heappush(self._expiries, (expires_at_ms, key))
            else:
                count = entry[0] + 1
                expires_at_ms = entry[1]
            self._counters[key] = (count, expires_at_ms)
            return count

    def _evict_expired(self, now_ms: int) -> None:
        while self._expiries and self._expiries[0][0] <= now_ms:
            expires_at, key = heapq.heappop(self._expiries)
            entry = self._counters.get(key)
            if entry is not None and entry[1] == expires_at:
                del self._counters[key]

    def __len__(self) -> int:
        return len(self._counters)

    def clear(self) -> None:
        with self._lock:
            self._counters.clear()
            self._expiries.clear()


class RedisCounterStore(CounterStore):
    """Shared counters in Redis for multi-instance deployments.

    INCR and PEXPIREAT run in one MULTI/EXEC transaction so a key never
    outlives its window even if the process dies between the two commands.
    """

    def __init__(self, redis: Redis, key_prefix: str = "resetgate:rl") -> None:
        self._redis = redis
        self._key_prefix = key_prefix

    async def increment(self, key: str, expires_at_ms: int, now_ms: int) -> int:
        full_key = f"{self._key_prefix}:{key}"
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.incr(full_key)
            pipe.pexpireat(full_key, expires_at_ms)
            count, _ = await pipe.execute()
        return int(count)
