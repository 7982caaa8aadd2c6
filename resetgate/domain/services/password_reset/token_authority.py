"""Reset token issuance and verification.

Tokens are 32 bytes from the operating system CSPRNG, hex encoded. The
store only ever sees the SHA-256 fingerprint, so a leaked table cannot be
replayed against the consume endpoint.
"""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from resetgate.domain.value_objects.reset_token import IssuedResetToken

TOKEN_BYTES = 32


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from stores that drop tzinfo."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TokenAuthority:
    """Issues reset tokens and decides whether a presented token is still good.

    Apart from reading the clock the authority is stateless; persisting the
    fingerprint is the caller's job.

    Args:
        ttl_seconds: Lifetime of an issued token.
        clock: Returns the current timezone-aware time; injectable for tests.
    """

    def __init__(self, ttl_seconds: int = 3600, clock: Callable[[], datetime] = utcnow) -> None:
        if ttl_seconds <= 0:
            raise ValueError("Token TTL must be positive")
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    @staticmethod
    def fingerprint(raw_token: str) -> str:
        """Deterministic SHA-256 hex digest of ``raw_token``."""
        return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()

    def issue(self, now: Optional[datetime] = None) -> IssuedResetToken:
        issued_at = as_utc(now) if now is not None else self._clock()
        raw_token = secrets.token_hex(TOKEN_BYTES)
        return IssuedResetToken(
            raw_token=raw_token,
            fingerprint=self.fingerprint(raw_token),
            issued_at=issued_at,
            expires_at=issued_at + self.ttl,
        )

    def is_expired(self, expires_at: datetime, now: Optional[datetime] = None) -> bool:
        current = as_utc(now) if now is not None else self._clock()
        return current >= as_utc(expires_at)

    def verify(
        self,
        raw_token: str,
        stored_fingerprint: str,
        stored_expires_at: datetime,
        now: Optional[datetime] = None,
    ) -> bool:
        """Check that ``raw_token`` matches the stored fingerprint and has not expired.

        The fingerprint comparison is constant-time. Both conditions must hold.
        """
        if not raw_token or not stored_fingerprint:
            return False
        matches = hmac.compare_digest(self.fingerprint(raw_token), stored_fingerprint)
        return matches and not self.is_expired(stored_expires_at, now)
