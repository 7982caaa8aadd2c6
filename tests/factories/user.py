"""Factory for persisting users in the test database."""

from typing import Optional

from faker import Faker
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from resetgate.domain.entities.user import User

fake = Faker()

_fast_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=4)


def hash_password(password: str) -> str:
    return _fast_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    return _fast_context.verify(password, hashed_password)


async def create_user(
    session: AsyncSession,
    email: Optional[str] = None,
    password: str = "OldPassword1",
    is_active: bool = True,
) -> User:
    """Insert a user and return it with its generated id.

    Args:
        session: Session bound to the test database.
        email: Defaults to a unique fake address.
        password: Plain password, stored bcrypt-hashed.
        is_active: Whether the account may receive reset links.
    """
    user = User(
        email=email or fake.unique.email(),
        hashed_password=hash_password(password),
        is_active=is_active,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user
