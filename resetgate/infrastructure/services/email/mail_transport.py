"""SMTP mail transport built on fastapi-mail.

In test mode nothing is sent: the message is logged without its body, since
the body contains a live reset link.
"""

import asyncio
from typing import Optional

import structlog
from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from fastapi_mail.schemas import MultipartSubtypeEnum

from resetgate.core.config.settings import Settings
from resetgate.core.exceptions import EmailServiceError
from resetgate.domain.interfaces.services import IMailTransport
from resetgate.utils.masking import mask_email

logger = structlog.get_logger(__name__)


class SmtpMailTransport(IMailTransport):
    """Delivers mail over SMTP with a per-message timeout.

    Attributes:
        test_mode: Log instead of sending.
        timeout: Seconds a single send may take before it is abandoned.
    """

    def __init__(self, settings: Settings):
        self.test_mode = settings.EMAIL_TEST_MODE
        self.timeout = settings.EMAIL_SEND_TIMEOUT_SECONDS
        self.fastmail: Optional[FastMail] = None

        if not self.test_mode:
            try:
                settings.validate_smtp_config()
                config = ConnectionConfig(
                    MAIL_USERNAME=settings.SMTP_USERNAME or "",
                    MAIL_PASSWORD=settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else "",
                    MAIL_FROM=settings.EMAIL_FROM_ADDRESS,
                    MAIL_FROM_NAME=settings.EMAIL_FROM_NAME,
                    MAIL_PORT=settings.SMTP_PORT,
                    MAIL_SERVER=settings.SMTP_HOST,
                    MAIL_STARTTLS=settings.SMTP_USE_TLS,
                    MAIL_SSL_TLS=settings.SMTP_USE_SSL,
                    USE_CREDENTIALS=bool(settings.SMTP_USERNAME and settings.SMTP_PASSWORD),
                    VALIDATE_CERTS=True,
                    TIMEOUT=int(max(1, self.timeout)),
                )
            except ValueError as exc:
                logger.error("Failed to configure FastMail", error=str(exc))
                raise EmailServiceError(f"Failed to configure email service: {exc}") from exc
            self.fastmail = FastMail(config)

        logger.info("SmtpMailTransport initialized", test_mode=self.test_mode, smtp_host=settings.SMTP_HOST)

    async def send(self, to: str, subject: str, body: str, html: Optional[str] = None) -> None:
        if self.fastmail is None:
            logger.info("Email logged in test mode", to=mask_email(to), subject=subject)
            return

        if html is not None:
            message = MessageSchema(
                subject=subject,
                recipients=[to],
                body=html,
                alternative_body=body,
                subtype=MessageType.html,
                multipart_subtype=MultipartSubtypeEnum.alternative,
            )
        else:
            message = MessageSchema(subject=subject, recipients=[to], body=body, subtype=MessageType.plain)

        try:
            await asyncio.wait_for(self.fastmail.send_message(message), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.error("Email delivery timed out", to=mask_email(to), timeout=self.timeout)
            raise EmailServiceError("Email delivery timed out") from exc
        except Exception as exc:
            logger.error("Email delivery failed", to=mask_email(to), error=str(exc))
            raise EmailServiceError(f"Email delivery failed: {exc}") from exc

        logger.info("Email sent", to=mask_email(to), subject=subject)
