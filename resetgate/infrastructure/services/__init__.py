from .email import PasswordResetEmailComposer, SmtpMailTransport
from .password_hasher import BcryptPasswordHasher

__all__ = ["BcryptPasswordHasher", "PasswordResetEmailComposer", "SmtpMailTransport"]
