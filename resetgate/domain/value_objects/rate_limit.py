"""Rate Limiting Value Objects for domain modeling.

These value objects describe one fixed-window limit and the outcome of
checking a request against it.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitRule:
    """A fixed-window limit for one bucket.

    Attributes:
        bucket: Name of the counter family, e.g. ``"reset:request:ip"``.
        limit: Requests allowed per window.
        window_seconds: Window length.
    """

    bucket: str
    limit: int
    window_seconds: int

    def __post_init__(self) -> None:
        """Validate rate limit configuration."""
        if not self.bucket:
            raise ValueError("Rate limit bucket must not be empty")
        if self.limit <= 0:
            raise ValueError("Rate limit must be positive")
        if self.window_seconds <= 0:
            raise ValueError("Rate limit window duration must be positive")

    @property
    def window_ms(self) -> int:
        return self.window_seconds * 1000


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single rate limit check.

    Attributes:
        limited: True when the post-increment count exceeds the limit.
        remaining: Requests left in the current window, never negative.
        reset_after_seconds: Whole seconds until the window rolls over.
    """

    limited: bool
    remaining: int
    reset_after_seconds: int
