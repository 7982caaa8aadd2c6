"""Repository interfaces for abstracting data persistence in the domain layer.

The reset flow depends on these ports only. The SQLModel adapter lives in
`resetgate.infrastructure.repositories`; tests substitute in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Optional

from resetgate.domain.entities.password_reset_token import PasswordResetToken
from resetgate.domain.entities.user import User
from resetgate.domain.value_objects.reset_token import IssuedResetToken


class IUserRepository(ABC):
    """Contract for the user store operations the reset flow needs.

    Implementations raise `DatabaseError` for store failures; every other
    outcome is expressed through return values.
    """

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Retrieves a user by email address (case-insensitively).

        Returns:
            An optional `User` entity. Returns `None` if no user is found.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_reset_token_by_fingerprint(self, fingerprint: str) -> Optional[PasswordResetToken]:
        """Retrieves the reset token record stored under ``fingerprint``.

        Expiry is not checked here; the caller decides what an expired record means.
        """
        raise NotImplementedError

    @abstractmethod
    async def save_reset_token(self, user_id: int, token: IssuedResetToken) -> PasswordResetToken:
        """Stores ``token`` as the user's reset token, replacing any previous one.

        The attempt counter of the new record starts at zero.
        """
        raise NotImplementedError

    @abstractmethod
    async def clear_reset_token(self, user_id: int, fingerprint: Optional[str] = None) -> bool:
        """Deletes the user's reset token.

        Args:
            user_id: Owning account.
            fingerprint: When given, only delete if the stored record still has it.

        Returns:
            bool: True if a record was deleted.
        """
        raise NotImplementedError

    @abstractmethod
    async def increment_reset_attempts(self, user_id: int, fingerprint: str) -> Optional[int]:
        """Atomically adds one to the attempt counter of a specific token.

        Returns:
            The new attempt count, or `None` if the record no longer exists.
        """
        raise NotImplementedError

    @abstractmethod
    async def update_credential_hash(self, user_id: int, hashed_password: str, fingerprint: str) -> bool:
        """Replaces the password hash and deletes the reset token in one transaction.

        The update only happens while the token identified by ``fingerprint``
        still exists, which makes a token usable exactly once even under
        concurrent consumption.

        Returns:
            bool: False if the token was already gone, in which case nothing changed.
        """
        raise NotImplementedError
