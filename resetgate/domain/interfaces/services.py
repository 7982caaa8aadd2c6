"""Service interfaces for the collaborators the reset flow drives."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class EmailMessage:
    """A rendered email ready for the transport.

    Attributes:
        subject: Subject line.
        body: Plain text body.
        html: Optional HTML alternative.
    """

    subject: str
    body: str
    html: Optional[str] = None


class IMailTransport(ABC):
    """Outbound mail delivery."""

    @abstractmethod
    async def send(self, to: str, subject: str, body: str, html: Optional[str] = None) -> None:
        """Deliver one message.

        Raises:
            EmailServiceError: If delivery fails or times out.
        """
        raise NotImplementedError


class IPasswordResetEmailComposer(ABC):
    """Turns a reset link into the email that carries it."""

    @abstractmethod
    def compose(self, reset_url: str, expires_in_minutes: int) -> EmailMessage:
        """Render the reset email.

        Raises:
            TemplateRenderError: If a template is missing or broken.
        """
        raise NotImplementedError


class IPasswordHasher(ABC):
    """Opaque one-way password hashing."""

    @abstractmethod
    async def hash(self, password: str) -> str:
        raise NotImplementedError

    @abstractmethod
    async def verify(self, password: str, hashed_password: str) -> bool:
        raise NotImplementedError
