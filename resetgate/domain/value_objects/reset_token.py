"""Reset Token Value Object.

The raw token is what the user receives by email; only its fingerprint is
ever persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class IssuedResetToken:
    """A freshly issued reset token.

    Attributes:
        raw_token: 64 hex characters. Never stored and never logged.
        fingerprint: SHA-256 hex digest of ``raw_token``, used for lookups.
        issued_at: Timezone-aware issuance time.
        expires_at: Timezone-aware expiry; the token is valid strictly before it.
    """

    raw_token: str = field(repr=False)
    fingerprint: str
    issued_at: datetime
    expires_at: datetime

    def __post_init__(self) -> None:
        if self.issued_at.tzinfo is None or self.expires_at.tzinfo is None:
            raise ValueError("Reset token timestamps must be timezone-aware")
        if self.expires_at <= self.issued_at:
            raise ValueError("Reset token must expire after it is issued")

    @property
    def fingerprint_prefix(self) -> str:
        """First 8 characters of the fingerprint, safe for log correlation."""
        return self.fingerprint[:8]

    @property
    def ttl_seconds(self) -> int:
        return int((self.expires_at - self.issued_at).total_seconds())
