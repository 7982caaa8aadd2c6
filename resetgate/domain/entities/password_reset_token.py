from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlmodel import Column, Field, SQLModel, String


class PasswordResetToken(SQLModel, table=True):
    """The live reset token of one account.

    At most one row exists per user; issuing a new token replaces it. The row
    is deleted when the token is consumed or its attempts are exhausted.
    Expired rows are treated as absent and removed lazily.

    Attributes:
        id: Surrogate primary key.
        user_id: Owning account, unique.
        fingerprint: SHA-256 hex digest of the raw token.
        issued_at: When the token was issued.
        expires_at: The token is valid strictly before this instant.
        attempt_count: Policy-failing submissions made with this token.
    """

    __tablename__ = "password_reset_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(
        sa_column=Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    )
    fingerprint: str = Field(sa_column=Column(String(64), index=True, nullable=False))
    issued_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    attempt_count: int = Field(default=0, nullable=False)
