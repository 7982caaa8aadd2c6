"""Password Value Objects."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PolicyResult:
    """Outcome of validating a candidate password.

    Attributes:
        valid: True when every rule passed.
        message: The first failing rule's message, ``None`` when valid.
    """

    valid: bool
    message: Optional[str] = None

    @classmethod
    def ok(cls) -> "PolicyResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, message: str) -> "PolicyResult":
        return cls(valid=False, message=message)
