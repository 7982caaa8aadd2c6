"""Fixed-window rate limiting shared by every reset endpoint."""

from .limiter import RateLimiter
from .stores import CounterStore, InMemoryCounterStore, RedisCounterStore

__all__ = ["RateLimiter", "CounterStore", "InMemoryCounterStore", "RedisCounterStore"]
