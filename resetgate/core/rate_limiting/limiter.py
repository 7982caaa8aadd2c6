"""Fixed-window rate limiter.

Each call increments the counter for ``(bucket, identity, window_start)``
before the limit is evaluated, so rejected calls still count. A window is
``floor(now_ms / window_ms)``; when it rolls over the caller starts on a fresh
key and the old counter simply expires.
"""

import math
import time
from typing import Callable, Optional

from redis.exceptions import RedisError
from structlog import get_logger

from resetgate.core.exceptions import RateLimitedError
from resetgate.core.rate_limiting.stores import CounterStore, InMemoryCounterStore
from resetgate.domain.value_objects.rate_limit import RateLimitResult, RateLimitRule

logger = get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class RateLimiter:
    """Fixed-window counters keyed by an arbitrary identity string.

    The limiter is shared by every call site; buckets are independent because
    the bucket name is part of the counter key.

    Attributes:
        store: Primary counter store.
        fallback_store: Process-local store used while the primary raises
            Redis errors. ``None`` makes store errors propagate.
        enabled: When False every check passes without touching a store.
    """

    def __init__(
        self,
        store: Optional[CounterStore] = None,
        *,
        fallback_store: Optional[CounterStore] = None,
        enabled: bool = True,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.store = store if store is not None else InMemoryCounterStore()
        self.fallback_store = fallback_store
        self.enabled = enabled
        self._clock = clock
        logger.debug(
            "RateLimiter initialized",
            store=type(self.store).__name__,
            fallback=type(fallback_store).__name__ if fallback_store is not None else None,
            enabled=enabled,
        )

    @staticmethod
    def counter_key(bucket: str, identity: str, window_start_ms: int) -> str:
        return f"{bucket}:{identity}:{window_start_ms}"

    async def check(self, bucket: str, identity: str, limit: int, window_ms: int) -> RateLimitResult:
        """Count one call against ``bucket`` for ``identity``.

        Args:
            bucket: Counter family name.
            identity: Who is being limited (IP, email, token fingerprint).
            limit: Calls allowed per window.
            window_ms: Window length in milliseconds.

        Returns:
            RateLimitResult: ``limited`` is True once the count exceeds ``limit``.

        Raises:
            ValueError: If ``limit`` or ``window_ms`` is not positive.
        """
        if limit <= 0 or window_ms <= 0:
            raise ValueError("limit and window_ms must be positive")

        now = self._clock()
        window_start = (now // window_ms) * window_ms
        window_end = window_start + window_ms
        reset_after = max(0, math.ceil((window_end - now) / 1000))

        if not self.enabled:
            return RateLimitResult(limited=False, remaining=limit, reset_after_seconds=reset_after)

        key = self.counter_key(bucket, identity, window_start)
        count = await self._increment(key, window_end, now)

        return RateLimitResult(
            limited=count > limit,
            remaining=max(0, limit - count),
            reset_after_seconds=reset_after,
        )

    async def enforce(self, rule: RateLimitRule, identity: str) -> RateLimitResult:
        """Check ``rule`` for ``identity`` and raise when the bucket is exhausted.

        Raises:
            RateLimitedError: Carrying the bucket's own ``retry_after``.
        """
        result = await self.check(rule.bucket, identity, rule.limit, rule.window_ms)
        if result.limited:
            logger.warning(
                "rate_limit_exceeded",
                bucket=rule.bucket,
                limit=rule.limit,
                retry_after=result.reset_after_seconds,
            )
            raise RateLimitedError(retry_after=result.reset_after_seconds, bucket=rule.bucket)
        return result

    async def _increment(self, key: str, expires_at_ms: int, now_ms: int) -> int:
        try:
            return await self.store.increment(key, expires_at_ms, now_ms)
        except RedisError as exc:
            if self.fallback_store is None:
                raise
            logger.error("rate_limit_store_failed", error=str(exc), fallback=type(self.fallback_store).__name__)
            return await self.fallback_store.increment(key, expires_at_ms, now_ms)
