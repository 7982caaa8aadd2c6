from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Column, Field, SQLModel, String


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """An account in the user store.

    The reset flow only reads accounts and rewrites `hashed_password`; creating
    and managing accounts belongs to the surrounding application.

    Attributes:
        id: The unique identifier for the user (primary key).
        email: A unique email address, matched case-insensitively.
        hashed_password: The bcrypt hash of the current password.
        is_active: Inactive accounts never receive reset links.
        created_at: When the account was created.
        updated_at: When the account was last modified.
    """

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(sa_column=Column(String(320), unique=True, index=True, nullable=False))
    hashed_password: Optional[str] = Field(default=None, max_length=255)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
