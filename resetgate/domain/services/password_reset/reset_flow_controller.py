"""Password reset flow: request, verify and consume.

Per account the reset token moves through
``NoActiveToken -> TokenIssued -> Consumed | Expired | AttemptsExhausted``
and back to ``NoActiveToken``. Every terminal state deletes the token record
except expiry, which is enforced at lookup time and cleaned up lazily.

Rate limit buckets are evaluated in a fixed order: the per-IP bucket of the
operation first (see `enforce_ip_limit`, which the HTTP layer runs before it
parses the body), then the per-email bucket for requests or the per-token
bucket for consumption.

Concurrency: attempt counting is a compare-and-update keyed on the token
fingerprint, followed by a delete once the cap is reached. Weak-password
submissions racing on the same token can therefore overshoot the cap by at
most the number of requests in flight before the delete lands; none of them
can change the password.
"""

import asyncio
import math
from enum import Enum
from typing import Dict, Optional, Set
from urllib.parse import urlencode

import structlog

from resetgate.core.config.password_reset import PasswordResetSettings
from resetgate.core.exceptions import (
    DatabaseError,
    DownstreamFailureError,
    PolicyViolationError,
    TokenInvalidOrExpiredError,
    ValidationError,
)
from resetgate.core.rate_limiting.limiter import RateLimiter
from resetgate.domain.entities.password_reset_token import PasswordResetToken
from resetgate.domain.entities.user import User
from resetgate.domain.interfaces.repositories import IUserRepository
from resetgate.domain.interfaces.services import (
    IMailTransport,
    IPasswordHasher,
    IPasswordResetEmailComposer,
)
from resetgate.domain.services.password_reset.password_policy import PasswordPolicy
from resetgate.domain.services.password_reset.token_authority import TokenAuthority
from resetgate.domain.value_objects.rate_limit import RateLimitResult, RateLimitRule
from resetgate.domain.value_objects.reset_token import IssuedResetToken
from resetgate.utils.masking import fingerprint_prefix, mask_email, mask_ip_address

logger = structlog.get_logger(__name__)

REQUEST_ACCEPTED_MESSAGE = "If an account exists, a reset link will be sent."
RESET_SUCCESS_MESSAGE = "Password has been reset successfully"
MISSING_FIELDS_MESSAGE = "Token and password are required"

# Strong references to in-flight email deliveries; the event loop only keeps weak ones.
_pending_deliveries: Set["asyncio.Task[None]"] = set()


def _delivery_finished(task: "asyncio.Task[None]") -> None:
    _pending_deliveries.discard(task)
    if task.cancelled():
        logger.warning("Password reset email delivery cancelled")
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "Password reset email delivery crashed",
            error_type=type(exc).__name__,
            error_message=str(exc),
        )


async def drain_reset_emails(timeout: Optional[float] = None) -> int:
    """Wait for reset emails still being delivered in the background.

    Called on shutdown so queued links are not lost, and by tests that need
    the email before asserting on it.

    Args:
        timeout: Seconds to wait; ``None`` waits for every delivery.

    Returns:
        int: Deliveries still running when the wait ended.
    """
    if not _pending_deliveries:
        return 0
    _, pending = await asyncio.wait(set(_pending_deliveries), timeout=timeout)
    return len(pending)


class ResetOperation(str, Enum):
    """Endpoints that own a per-IP rate limit bucket."""

    REQUEST = "request"
    VERIFY = "verify"
    CONSUME = "consume"


class ResetFlowController:
    """Orchestrates token issuance, verification and consumption.

    The controller composes the rate limiter, the token authority and the
    password policy with the user store, the password hasher and the mail
    transport. It holds no per-request state and is safe to share.

    Args:
        user_repository: Store for accounts and reset token records.
        mail_transport: Delivers the reset email.
        email_composer: Renders the reset email.
        password_hasher: Hashes the new password.
        rate_limiter: Shared fixed-window limiter.
        settings: Limits, TTL, attempt cap and password bounds.
        token_authority: Defaults to one built from ``settings``.
        password_policy: Defaults to one built from ``settings``.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        mail_transport: IMailTransport,
        email_composer: IPasswordResetEmailComposer,
        password_hasher: IPasswordHasher,
        rate_limiter: RateLimiter,
        settings: PasswordResetSettings,
        token_authority: Optional[TokenAuthority] = None,
        password_policy: Optional[PasswordPolicy] = None,
    ):
        self._users = user_repository
        self._mail = mail_transport
        self._composer = email_composer
        self._hasher = password_hasher
        self._limiter = rate_limiter
        self._settings = settings
        self.token_authority = token_authority or TokenAuthority(settings.RESET_TOKEN_TTL_SECONDS)
        self.password_policy = password_policy or PasswordPolicy(
            settings.PASSWORD_MIN_LENGTH, settings.PASSWORD_MAX_LENGTH
        )
        self.max_attempts = settings.RESET_MAX_ATTEMPTS

        self.ip_rules: Dict[ResetOperation, RateLimitRule] = {
            ResetOperation.REQUEST: RateLimitRule(
                "reset:request:ip",
                settings.RESET_REQUEST_IP_LIMIT,
                settings.RESET_REQUEST_IP_WINDOW_SECONDS,
            ),
            ResetOperation.VERIFY: RateLimitRule(
                "reset:verify:ip",
                settings.RESET_VERIFY_IP_LIMIT,
                settings.RESET_VERIFY_IP_WINDOW_SECONDS,
            ),
            ResetOperation.CONSUME: RateLimitRule(
                "reset:consume:ip",
                settings.RESET_CONSUME_IP_LIMIT,
                settings.RESET_CONSUME_IP_WINDOW_SECONDS,
            ),
        }
        self.email_rule = RateLimitRule(
            "reset:request:email",
            settings.RESET_REQUEST_EMAIL_LIMIT,
            settings.RESET_REQUEST_EMAIL_WINDOW_SECONDS,
        )
        self.token_rule = RateLimitRule(
            "reset:consume:token",
            settings.RESET_CONSUME_TOKEN_LIMIT,
            settings.RESET_CONSUME_TOKEN_WINDOW_SECONDS,
        )

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    async def enforce_ip_limit(self, operation: ResetOperation, client_ip: str) -> RateLimitResult:
        """Count a call against the per-IP bucket of ``operation``.

        Raises:
            RateLimitedError: When the address exhausted the bucket.
        """
        rule = self.ip_rules[ResetOperation(operation)]
        return await self._limiter.enforce(rule, client_ip or "unknown")

    # ------------------------------------------------------------------
    # Request
    # ------------------------------------------------------------------

    async def request_reset(self, email: str, client_ip: str = "unknown") -> str:
        """Issue and email a reset token if ``email`` belongs to an active account.

        The response is the same whether or not the account exists, and
        store or mail failures are logged and swallowed into it. The email is
        sent in the background after the token is stored, so a slow SMTP server
        cannot make known accounts answer later than unknown ones. A token that
        was stored stays valid even if its email never leaves.

        Returns:
            str: The generic acceptance message.

        Raises:
            RateLimitedError: When the mailbox exhausted its bucket.
        """
        normalized = email.strip().lower()
        await self._limiter.enforce(self.email_rule, normalized)

        request_logger = logger.bind(
            email_masked=mask_email(normalized),
            client_ip=mask_ip_address(client_ip),
            operation="password_reset_request",
        )

        try:
            user = await self._users.get_by_email(normalized)
            if user is None or not user.is_active or user.id is None:
                request_logger.info("Password reset requested for unknown or inactive account")
                return REQUEST_ACCEPTED_MESSAGE

            issued = self.token_authority.issue()
            await self._users.save_reset_token(user.id, issued)
        except Exception as exc:  # noqa: BLE001 - enumeration-safe response
            request_logger.error(
                "Password reset token issuance failed",
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            return REQUEST_ACCEPTED_MESSAGE

        request_logger.info(
            "Password reset token issued",
            user_id=user.id,
            fingerprint=issued.fingerprint_prefix,
            expires_at=issued.expires_at.isoformat(),
        )
        self._dispatch_reset_email(user, issued, request_logger)
        return REQUEST_ACCEPTED_MESSAGE

    def build_reset_url(self, raw_token: str) -> str:
        base = self._settings.RESET_URL_BASE
        separator = "&" if "?" in base else "?"
        return f"{base}{separator}{urlencode({'token': raw_token})}"

    def _dispatch_reset_email(self, user: User, issued: IssuedResetToken, request_logger) -> None:
        task = asyncio.create_task(self._send_reset_email(user.id, user.email, issued, request_logger))
        _pending_deliveries.add(task)
        task.add_done_callback(_delivery_finished)

    async def _send_reset_email(self, user_id: int, to: str, issued: IssuedResetToken, request_logger) -> None:
        try:
            message = self._composer.compose(
                reset_url=self.build_reset_url(issued.raw_token),
                expires_in_minutes=math.ceil(issued.ttl_seconds / 60),
            )
            await self._mail.send(to, message.subject, message.body, html=message.html)
        except Exception as exc:  # noqa: BLE001 - token stays valid without the email
            request_logger.error(
                "Password reset email could not be sent",
                user_id=user_id,
                fingerprint=issued.fingerprint_prefix,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            return
        request_logger.info("Password reset email sent", user_id=user_id)

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    async def verify_token(self, token: Optional[str]) -> None:
        """Check that ``token`` is live without changing any state.

        Raises:
            TokenInvalidOrExpiredError: For unknown, expired or exhausted tokens.
            DownstreamFailureError: If the store cannot be read.
        """
        if not token:
            raise TokenInvalidOrExpiredError()

        fingerprint = self.token_authority.fingerprint(token)
        record = await self._find_record(fingerprint)
        if record is None or not self._is_live(token, record):
            logger.info("Password reset token rejected", fingerprint=fingerprint_prefix(fingerprint), operation="verify")
            raise TokenInvalidOrExpiredError()

    # ------------------------------------------------------------------
    # Consume
    # ------------------------------------------------------------------

    async def consume_token(self, token: Optional[str], new_password: Optional[str]) -> str:
        """Set a new password using ``token``.

        A password that fails the policy counts as an attempt against the
        token; the token dies when the count reaches the cap. A password that
        passes replaces the credential hash and deletes the token in one
        store transaction.

        Returns:
            str: The success message.

        Raises:
            ValidationError: If the token or the password is missing.
            RateLimitedError: When the token exhausted its bucket.
            TokenInvalidOrExpiredError: For unknown, expired, exhausted or consumed tokens.
            PolicyViolationError: With the first failing policy rule.
            DownstreamFailureError: If the store or the hasher fails; the token is kept.
        """
        if not token or not new_password:
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        fingerprint = self.token_authority.fingerprint(token)
        await self._limiter.enforce(self.token_rule, fingerprint)

        consume_logger = logger.bind(fingerprint=fingerprint_prefix(fingerprint), operation="consume")

        record = await self._find_record(fingerprint)
        if record is None:
            consume_logger.info("Password reset token rejected", reason="not_found")
            raise TokenInvalidOrExpiredError()

        if not self._is_live(token, record):
            consume_logger.info("Password reset token rejected", reason="expired_or_exhausted")
            await self._discard(record, consume_logger)
            raise TokenInvalidOrExpiredError()

        policy = self.password_policy.validate(new_password)
        if not policy.valid:
            await self._record_failed_attempt(record, consume_logger)
            raise PolicyViolationError(policy.message)

        try:
            hashed_password = await self._hasher.hash(new_password)
            updated = await self._users.update_credential_hash(record.user_id, hashed_password, fingerprint)
        except Exception as exc:  # noqa: BLE001 - surfaced as a server error
            consume_logger.error(
                "Password reset could not be finalized",
                user_id=record.user_id,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            raise DownstreamFailureError() from exc

        if not updated:
            consume_logger.info("Password reset token rejected", reason="consumed_concurrently")
            raise TokenInvalidOrExpiredError()

        consume_logger.info("Password reset completed", user_id=record.user_id)
        return RESET_SUCCESS_MESSAGE

    async def _record_failed_attempt(self, record: PasswordResetToken, consume_logger) -> None:
        try:
            attempts = await self._users.increment_reset_attempts(record.user_id, record.fingerprint)
            if attempts is None:
                consume_logger.info("Password reset token disappeared while counting an attempt")
                raise TokenInvalidOrExpiredError()
            consume_logger.info(
                "Password reset attempt rejected by policy",
                user_id=record.user_id,
                attempts=attempts,
                max_attempts=self.max_attempts,
            )
            if attempts >= self.max_attempts:
                await self._users.clear_reset_token(record.user_id, record.fingerprint)
                consume_logger.warning("Password reset token exhausted", user_id=record.user_id)
        except DatabaseError as exc:
            consume_logger.error("Password reset attempt could not be recorded", error_message=str(exc))
            raise DownstreamFailureError() from exc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _find_record(self, fingerprint: str) -> Optional[PasswordResetToken]:
        try:
            return await self._users.get_reset_token_by_fingerprint(fingerprint)
        except DatabaseError as exc:
            logger.error(
                "Password reset token lookup failed",
                fingerprint=fingerprint_prefix(fingerprint),
                error_message=str(exc),
            )
            raise DownstreamFailureError() from exc

    def _is_live(self, token: str, record: PasswordResetToken) -> bool:
        if record.attempt_count >= self.max_attempts:
            return False
        return self.token_authority.verify(token, record.fingerprint, record.expires_at)

    async def _discard(self, record: PasswordResetToken, consume_logger) -> None:
        try:
            await self._users.clear_reset_token(record.user_id, record.fingerprint)
        except DatabaseError as exc:
            consume_logger.warning("Stale password reset token could not be removed", error_message=str(exc))
