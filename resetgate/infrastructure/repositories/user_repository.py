"""User Repository implementation using SQLAlchemy.

This module provides the repository pattern implementation of the user store
operations the password reset flow needs. Every write commits its own
transaction; SQLAlchemy errors are logged and re-raised as `DatabaseError`
so the domain never sees driver exceptions.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from resetgate.core.exceptions import DatabaseError
from resetgate.domain.entities.password_reset_token import PasswordResetToken
from resetgate.domain.entities.user import User
from resetgate.domain.interfaces.repositories import IUserRepository
from resetgate.domain.value_objects.reset_token import IssuedResetToken
from resetgate.utils.masking import fingerprint_prefix, mask_email

logger = get_logger(__name__)


class UserRepository(IUserRepository):
    """SQLAlchemy implementation of `IUserRepository`.

    The reset token lives in its own table with a unique `user_id`, so
    "one live token per account" is enforced by the schema as well as by
    `save_reset_token`.
    """

    def __init__(self, db_session: AsyncSession):
        """Initialize repository with database session.

        Args:
            db_session: SQLAlchemy async session for database operations
        """
        self.db_session = db_session
        logger.debug("UserRepository initialized")

    async def get_by_email(self, email: str) -> Optional[User]:
        try:
            statement = select(User).where(func.lower(User.email) == email.strip().lower())
            result = await self.db_session.execute(statement)
            return result.scalars().first()
        except SQLAlchemyError as exc:
            logger.error("Failed to load user by email", email_masked=mask_email(email), error=str(exc))
            raise DatabaseError("Failed to load user") from exc

    async def get_reset_token_by_fingerprint(self, fingerprint: str) -> Optional[PasswordResetToken]:
        try:
            statement = (
                select(PasswordResetToken)
                .where(PasswordResetToken.fingerprint == fingerprint)
                .execution_options(populate_existing=True)
            )
            result = await self.db_session.execute(statement)
            return result.scalars().first()
        except SQLAlchemyError as exc:
            logger.error(
                "Failed to load reset token",
                fingerprint=fingerprint_prefix(fingerprint),
                error=str(exc),
            )
            raise DatabaseError("Failed to load reset token") from exc

    async def save_reset_token(self, user_id: int, token: IssuedResetToken) -> PasswordResetToken:
        record = PasswordResetToken(
            user_id=user_id,
            fingerprint=token.fingerprint,
            issued_at=token.issued_at,
            expires_at=token.expires_at,
            attempt_count=0,
        )
        try:
            await self.db_session.execute(
                delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id)
            )
            self.db_session.add(record)
            await self.db_session.commit()
            await self.db_session.refresh(record)
        except SQLAlchemyError as exc:
            await self.db_session.rollback()
            logger.error("Failed to store reset token", user_id=user_id, error=str(exc))
            raise DatabaseError("Failed to store reset token") from exc

        logger.debug("Reset token stored", user_id=user_id, fingerprint=token.fingerprint_prefix)
        return record

    async def clear_reset_token(self, user_id: int, fingerprint: Optional[str] = None) -> bool:
        statement = delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id)
        if fingerprint is not None:
            statement = statement.where(PasswordResetToken.fingerprint == fingerprint)
        try:
            result = await self.db_session.execute(statement)
            await self.db_session.commit()
        except SQLAlchemyError as exc:
            await self.db_session.rollback()
            logger.error("Failed to clear reset token", user_id=user_id, error=str(exc))
            raise DatabaseError("Failed to clear reset token") from exc
        return result.rowcount > 0

    async def increment_reset_attempts(self, user_id: int, fingerprint: str) -> Optional[int]:
        match = (
            PasswordResetToken.user_id == user_id,
            PasswordResetToken.fingerprint == fingerprint,
        )
        try:
            result = await self.db_session.execute(
                update(PasswordResetToken)
                .where(*match)
                .values(attempt_count=PasswordResetToken.attempt_count + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await self.db_session.rollback()
                return None
            attempts = await self.db_session.scalar(
                select(PasswordResetToken.attempt_count).where(*match)
            )
            await self.db_session.commit()
        except SQLAlchemyError as exc:
            await self.db_session.rollback()
            logger.error("Failed to count reset attempt", user_id=user_id, error=str(exc))
            raise DatabaseError("Failed to count reset attempt") from exc
        return attempts

    async def update_credential_hash(self, user_id: int, hashed_password: str, fingerprint: str) -> bool:
        try:
            consumed = await self.db_session.execute(
                delete(PasswordResetToken).where(
                    PasswordResetToken.user_id == user_id,
                    PasswordResetToken.fingerprint == fingerprint,
                )
            )
            if consumed.rowcount == 0:
                await self.db_session.rollback()
                return False
            await self.db_session.execute(
                update(User)
                .where(User.id == user_id)
                .values(hashed_password=hashed_password, updated_at=datetime.now(timezone.utc))
                .execution_options(synchronize_session=False)
            )
            await self.db_session.commit()
        except SQLAlchemyError as exc:
            await self.db_session.rollback()
            logger.error("Failed to update credential", user_id=user_id, error=str(exc))
            raise DatabaseError("Failed to update credential") from exc

        logger.info("Credential updated and reset token consumed", user_id=user_id)
        return True
