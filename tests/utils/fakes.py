"""In-memory collaborators for exercising the reset flow without a database or SMTP."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from resetgate.core.exceptions import DatabaseError, EmailServiceError
from resetgate.domain.entities.password_reset_token import PasswordResetToken
from resetgate.domain.entities.user import User
from resetgate.domain.interfaces.repositories import IUserRepository
from resetgate.domain.interfaces.services import IMailTransport, IPasswordHasher
from resetgate.domain.value_objects.reset_token import IssuedResetToken


@dataclass
class SentEmail:
    to: str
    subject: str
    body: str
    html: Optional[str] = None


class RecordingMailTransport(IMailTransport):
    """Keeps every message instead of sending it."""

    def __init__(self, fail_with: Optional[Exception] = None):
        self.sent: List[SentEmail] = []
        self.fail_with = fail_with

    async def send(self, to: str, subject: str, body: str, html: Optional[str] = None) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(SentEmail(to=to, subject=subject, body=body, html=html))


class FailingMailTransport(RecordingMailTransport):
    def __init__(self):
        super().__init__(fail_with=EmailServiceError("SMTP unreachable"))


class SlowMailTransport(RecordingMailTransport):
    """Records messages only after ``delay`` seconds, like a sluggish SMTP relay."""

    def __init__(self, delay: float):
        super().__init__()
        self.delay = delay

    async def send(self, to: str, subject: str, body: str, html: Optional[str] = None) -> None:
        await asyncio.sleep(self.delay)
        await super().send(to, subject, body, html=html)


class PlainPasswordHasher(IPasswordHasher):
    """Reversible stand-in for bcrypt so assertions stay readable."""

    async def hash(self, password: str) -> str:
        return f"hashed::{password}"

    async def verify(self, password: str, hashed_password: str) -> bool:
        return hashed_password == f"hashed::{password}"


@dataclass
class InMemoryUserRepository(IUserRepository):
    """Dictionary-backed user store with the same semantics as the SQL adapter.

    Set ``fail_on`` to a method name to make that method raise `DatabaseError`.
    """

    users: Dict[int, User] = field(default_factory=dict)
    tokens: Dict[int, PasswordResetToken] = field(default_factory=dict)
    fail_on: set = field(default_factory=set)

    def add_user(self, email: str, hashed_password: str = "hashed::old-pass1", is_active: bool = True) -> User:
        user = User(id=len(self.users) + 1, email=email, hashed_password=hashed_password, is_active=is_active)
        self.users[user.id] = user
        return user

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail_on:
            raise DatabaseError(f"{name} failed")

    async def get_by_email(self, email: str) -> Optional[User]:
        self._maybe_fail("get_by_email")
        wanted = email.strip().lower()
        return next((u for u in self.users.values() if u.email.lower() == wanted), None)

    async def get_reset_token_by_fingerprint(self, fingerprint: str) -> Optional[PasswordResetToken]:
        self._maybe_fail("get_reset_token_by_fingerprint")
        return next((t for t in self.tokens.values() if t.fingerprint == fingerprint), None)

    async def save_reset_token(self, user_id: int, token: IssuedResetToken) -> PasswordResetToken:
        self._maybe_fail("save_reset_token")
        record = PasswordResetToken(
            id=user_id,
            user_id=user_id,
            fingerprint=token.fingerprint,
            issued_at=token.issued_at,
            expires_at=token.expires_at,
            attempt_count=0,
        )
        self.tokens[user_id] = record
        return record

    async def clear_reset_token(self, user_id: int, fingerprint: Optional[str] = None) -> bool:
        self._maybe_fail("clear_reset_token")
        record = self.tokens.get(user_id)
        if record is None or (fingerprint is not None and record.fingerprint != fingerprint):
            return False
        del self.tokens[user_id]
        return True

    async def increment_reset_attempts(self, user_id: int, fingerprint: str) -> Optional[int]:
        self._maybe_fail("increment_reset_attempts")
        record = self.tokens.get(user_id)
        if record is None or record.fingerprint != fingerprint:
            return None
        record.attempt_count += 1
        return record.attempt_count

    async def update_credential_hash(self, user_id: int, hashed_password: str, fingerprint: str) -> bool:
        self._maybe_fail("update_credential_hash")
        record = self.tokens.get(user_id)
        if record is None or record.fingerprint != fingerprint:
            return False
        self.users[user_id].hashed_password = hashed_password
        del self.tokens[user_id]
        return True


class FrozenClock:
    """Timezone-aware clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class ManualMillisClock:
    """Epoch-millisecond clock for the rate limiter."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms
