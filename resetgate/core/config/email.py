"""Email configuration settings.

This module defines the SMTP connection used to deliver password reset links
and the location of the templates those emails are rendered from.
"""

from pathlib import Path
from typing import Optional

from pydantic import EmailStr, Field, SecretStr
from pydantic_settings import BaseSettings

DEFAULT_TEMPLATES_DIR = str(Path(__file__).resolve().parents[2] / "templates" / "email")


class EmailSettings(BaseSettings):
    """Email configuration settings with secure defaults and validation.

    Attributes:
        SMTP_HOST: SMTP server hostname
        SMTP_PORT: SMTP server port (587 for STARTTLS, 465 for SSL)
        SMTP_USERNAME: SMTP authentication username
        SMTP_PASSWORD: SMTP authentication password (SecretStr)
        SMTP_USE_TLS: Enable STARTTLS
        SMTP_USE_SSL: Enable implicit SSL (alternative to STARTTLS)
        EMAIL_FROM_ADDRESS: Sender email address
        EMAIL_FROM_NAME: Sender display name
        EMAIL_TEMPLATES_DIR: Directory containing the reset email templates
        EMAIL_SEND_TIMEOUT_SECONDS: Upper bound for a single send
        EMAIL_TEST_MODE: Log emails instead of delivering them
    """

    SMTP_HOST: str = Field(default="localhost", description="SMTP server hostname")
    SMTP_PORT: int = Field(default=587, ge=1, le=65535)
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[SecretStr] = None
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False

    EMAIL_FROM_ADDRESS: EmailStr = "noreply@example.com"
    EMAIL_FROM_NAME: str = "resetgate"
    EMAIL_TEMPLATES_DIR: str = DEFAULT_TEMPLATES_DIR
    EMAIL_SEND_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)
    EMAIL_TEST_MODE: bool = False

    def validate_smtp_config(self) -> None:
        """Validate SMTP configuration for production use.

        Raises:
            ValueError: If SMTP configuration is invalid or insecure
        """
        if self.EMAIL_TEST_MODE or getattr(self, "APP_ENV", "development") not in {"production", "staging"}:
            return

        if not self.SMTP_USERNAME or not self.SMTP_PASSWORD:
            raise ValueError("SMTP_USERNAME and SMTP_PASSWORD are required in production")

        if not (self.SMTP_USE_TLS or self.SMTP_USE_SSL):
            raise ValueError("Either SMTP_USE_TLS or SMTP_USE_SSL must be enabled for security")

        if self.SMTP_USE_TLS and self.SMTP_USE_SSL:
            raise ValueError("Cannot enable both SMTP_USE_TLS and SMTP_USE_SSL simultaneously")
