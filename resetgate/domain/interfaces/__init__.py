"""Domain ports implemented by the infrastructure layer."""

from .repositories import IUserRepository
from .services import EmailMessage, IMailTransport, IPasswordHasher, IPasswordResetEmailComposer

__all__ = [
    "IUserRepository",
    "EmailMessage",
    "IMailTransport",
    "IPasswordHasher",
    "IPasswordResetEmailComposer",
]
