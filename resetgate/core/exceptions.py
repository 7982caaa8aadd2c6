"""Centralized, structured exception hierarchy for resetgate.

Each exception carries a machine-readable `code` for programmatic handling and
a human-readable `message` that is safe to return to the caller. The API layer
maps every class to exactly one HTTP status in `resetgate.core.handlers`.
"""

from typing import Final

__all__: Final = [
    "ResetGateError",
    "ValidationError",
    "RateLimitedError",
    "TokenInvalidOrExpiredError",
    "PolicyViolationError",
    "DownstreamFailureError",
    "DatabaseError",
    "EmailServiceError",
    "TemplateRenderError",
    "GENERIC_INVALID_TOKEN_MESSAGE",
]

GENERIC_INVALID_TOKEN_MESSAGE: Final = "Token is invalid or expired"


class ResetGateError(Exception):
    """Base exception class for all custom errors in the application.

    Attributes:
        message (str): A human-readable error message.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Caller errors (400 / 429)
# ---------------------------------------------------------------------------


class ValidationError(ResetGateError):
    """Raised for malformed or missing input. Maps to `400 Bad Request`."""

    def __init__(self, message: str = "Invalid request", code: str = "validation_error"):
        super().__init__(message, code)


class RateLimitedError(ResetGateError):
    """Raised when a fixed-window rate limit bucket is exhausted.

    Maps to `429 Too Many Requests` with a `Retry-After` header.

    Attributes:
        retry_after (int): Seconds until the offending window rolls over.
        bucket (str): Name of the bucket that tripped, for logging only.
    """

    def __init__(
        self,
        retry_after: int,
        bucket: str = "",
        message: str = "Too many requests. Please try again later.",
        code: str = "rate_limited",
    ):
        super().__init__(message, code)
        self.retry_after = max(0, int(retry_after))
        self.bucket = bucket


class TokenInvalidOrExpiredError(ResetGateError):
    """Raised for unknown, expired, exhausted or already consumed reset tokens.

    The message is always the same so the caller cannot tell these cases
    apart. Maps to `400 Bad Request`.
    """

    def __init__(self, message: str = GENERIC_INVALID_TOKEN_MESSAGE, code: str = "token_invalid_or_expired"):
        super().__init__(message, code)


class PolicyViolationError(ResetGateError):
    """Raised when a new password fails the password policy.

    Maps to `400 Bad Request` and carries the first failing rule's message.
    """

    def __init__(self, message: str, code: str = "password_policy_violation"):
        super().__init__(message, code)


class DownstreamFailureError(ResetGateError):
    """Raised when a collaborator fails while a reset is being finalized.

    Maps to `500 Internal Server Error`. The reset token is left intact.
    """

    def __init__(self, message: str = "Failed to reset password", code: str = "downstream_failure"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Infrastructure errors raised by adapters
# ---------------------------------------------------------------------------


class DatabaseError(ResetGateError):
    """Raised by the user store when a read or write fails."""

    def __init__(self, message: str = "Database operation failed", code: str = "database_error"):
        super().__init__(message, code)


class EmailServiceError(ResetGateError):
    """Raised when the mail transport fails or times out."""

    def __init__(self, message: str = "Email delivery failed", code: str = "email_service_error"):
        super().__init__(message, code)


class TemplateRenderError(EmailServiceError):
    """Raised when a reset email template cannot be rendered."""

    def __init__(self, message: str = "Email template rendering failed", code: str = "template_render_error"):
        super().__init__(message, code)
