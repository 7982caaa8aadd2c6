"""
Asynchronous Database Utilities Module

This module owns the SQLAlchemy asyncio engine used by the user store. The
engine and its session factory are created once by the application factory
and kept on ``app.state``; request handlers receive sessions through the
`get_async_db` dependency.

**Security Note**: Use SSL parameters in DATABASE_URL when connecting over
untrusted networks, and never log the URL itself.

Key Components:
    - build_engine: Create the async engine from settings.
    - build_session_factory: Session factory bound to an engine.
    - get_async_db: FastAPI dependency yielding a session per request.
    - create_db_and_tables: Create the users and reset token tables.
    - wait_for_database / check_database_health: Startup retry and health probe.
"""

import time
from typing import Any, AsyncGenerator, Dict

import structlog
from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from resetgate.core.config.settings import Settings
from resetgate.domain import entities  # noqa: F401 - registers table metadata

logger = structlog.get_logger(__name__)


def driver_connect_args(url: str, command_timeout: float) -> Dict[str, Any]:
    """Per-statement timeout in the keyword the DBAPI driver of ``url`` expects."""
    if "+asyncpg" in url:
        return {"command_timeout": command_timeout}
    if url.startswith("sqlite"):
        return {"timeout": command_timeout}
    return {}


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for ``settings.DATABASE_URL``.

    Pool sizing only applies to server databases; SQLite uses SQLAlchemy's
    default pool for its dialect. Every statement is bounded by
    ``DATABASE_COMMAND_TIMEOUT``.
    """
    url = settings.DATABASE_URL
    engine_kwargs: Dict[str, Any] = {
        "echo": settings.DATABASE_ECHO,
        "future": True,
        "connect_args": driver_connect_args(url, settings.DATABASE_COMMAND_TIMEOUT),
    }
    if not url.startswith("sqlite"):
        engine_kwargs.update(
            pool_size=settings.POSTGRES_POOL_SIZE,
            max_overflow=settings.POSTGRES_MAX_OVERFLOW,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
            pool_pre_ping=True,
        )
    engine = create_async_engine(url, **engine_kwargs)
    logger.debug("Async database engine created", dialect=engine.dialect.name)
    return engine


def build_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)  # type: ignore[call-overload]


async def get_async_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an AsyncSession.

    The transaction is rolled back if the request fails and the session is
    always closed afterwards.

    Yields:
        AsyncSession: An asynchronous database session.
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        logger.debug("Async database session created")
        try:
            yield session
        except Exception:
            await session.rollback()
            logger.error("Async database session rollback due to error")
            raise
        finally:
            await session.close()
            logger.debug("Async database session closed")


async def create_db_and_tables(engine: AsyncEngine) -> None:
    """Create the users and reset token tables if they do not exist yet."""
    start_time = time.time()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info(
        "database_tables_created",
        execution_time=time.time() - start_time,
        tables=list(SQLModel.metadata.tables.keys()),
    )


async def _ping(engine: AsyncEngine) -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def wait_for_database(engine: AsyncEngine, attempts: int = 5) -> None:
    """
    Block until the database answers, retrying with exponential backoff.

    Raises:
        OperationalError: If the database is still unreachable after ``attempts``.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
        retry=retry_if_exception_type((OperationalError, OSError)),
        reraise=True,
    ):
        with attempt:
            if attempt.retry_state.attempt_number > 1:
                logger.warning("database_unavailable_retrying", attempt=attempt.retry_state.attempt_number)
            await _ping(engine)
    logger.info("database_ready")


async def check_database_health(engine: AsyncEngine) -> bool:
    """
    Performs a single health probe against the database.

    Returns:
        bool: True if the database answered ``SELECT 1``.
    """
    start_time = time.time()
    try:
        await _ping(engine)
    except (SQLAlchemyError, OSError) as exc:
        logger.error(
            "database_health_check_failed",
            error=str(exc),
            execution_time=time.time() - start_time,
        )
        return False
    return True
