from .mail_transport import SmtpMailTransport
from .templates import PasswordResetEmailComposer

__all__ = ["SmtpMailTransport", "PasswordResetEmailComposer"]
