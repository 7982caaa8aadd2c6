"""Password reset flow settings.

Every rate limit is expressed as a ``limit`` and a window in seconds. The
defaults allow ten reset requests per minute from one address and three per
hour for one mailbox.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class PasswordResetSettings(BaseSettings):
    """Token lifetime, attempt cap, password rules and per-bucket rate limits.

    Attributes:
        RESET_TOKEN_TTL_SECONDS: Lifetime of an issued token.
        RESET_MAX_ATTEMPTS: Policy-failing submissions a token survives.
        RESET_URL_BASE: Page that receives ``?token=...`` in the email link.
        PASSWORD_MIN_LENGTH / PASSWORD_MAX_LENGTH: Length bounds for new passwords.
        BCRYPT_ROUNDS: Work factor used when hashing the new password.
        RESET_*_LIMIT / RESET_*_WINDOW_SECONDS: Fixed-window limits per bucket.
    """

    RESET_TOKEN_TTL_SECONDS: int = Field(default=3600, gt=0)
    RESET_MAX_ATTEMPTS: int = Field(default=5, gt=0)
    RESET_URL_BASE: str = "http://localhost:3000/reset-password"

    PASSWORD_MIN_LENGTH: int = Field(default=8, gt=0)
    PASSWORD_MAX_LENGTH: int = Field(default=128, gt=0)
    BCRYPT_ROUNDS: int = Field(default=12, ge=4, le=31)

    RESET_REQUEST_IP_LIMIT: int = Field(default=10, gt=0)
    RESET_REQUEST_IP_WINDOW_SECONDS: int = Field(default=60, gt=0)
    RESET_REQUEST_EMAIL_LIMIT: int = Field(default=3, gt=0)
    RESET_REQUEST_EMAIL_WINDOW_SECONDS: int = Field(default=3600, gt=0)
    RESET_VERIFY_IP_LIMIT: int = Field(default=30, gt=0)
    RESET_VERIFY_IP_WINDOW_SECONDS: int = Field(default=60, gt=0)
    RESET_CONSUME_IP_LIMIT: int = Field(default=10, gt=0)
    RESET_CONSUME_IP_WINDOW_SECONDS: int = Field(default=60, gt=0)
    RESET_CONSUME_TOKEN_LIMIT: int = Field(default=10, gt=0)
    RESET_CONSUME_TOKEN_WINDOW_SECONDS: int = Field(default=900, gt=0)
