"""Password hashing using passlib's bcrypt scheme.

bcrypt is deliberately slow, so hashing and verification run in the
threadpool instead of on the event loop.
"""

from passlib.context import CryptContext
from starlette.concurrency import run_in_threadpool

from resetgate.domain.interfaces.services import IPasswordHasher


class BcryptPasswordHasher(IPasswordHasher):
    """bcrypt hasher with a configurable work factor.

    Args:
        rounds: bcrypt cost; 12 in production, 4 keeps tests fast.
    """

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    async def hash(self, password: str) -> str:
        return await run_in_threadpool(self._context.hash, password)

    async def verify(self, password: str, hashed_password: str) -> bool:
        return await run_in_threadpool(self._context.verify, password, hashed_password)
