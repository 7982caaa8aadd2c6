"""Application lifecycle management.

This module handles application startup and shutdown, ensuring the database
is reachable and its tables exist before traffic is served, and that pooled
connections are released on exit.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from structlog import get_logger

from resetgate.core.config.settings import Settings
from resetgate.domain.services.password_reset import drain_reset_emails
from resetgate.infrastructure.database.async_db import create_db_and_tables, wait_for_database

logger = get_logger(__name__)


def create_lifespan_manager(settings: Settings):
    """Create the application lifespan manager.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown for the services attached to ``app.state``.

        Raises:
            OperationalError: If the database stays unreachable during startup.
        """
        engine = app.state.engine
        try:
            await wait_for_database(engine, attempts=settings.DATABASE_CONNECT_RETRIES)
        except Exception:
            logger.error("database_unavailable_on_startup")
            raise
        await create_db_and_tables(engine)
        logger.info("application_startup", env=settings.APP_ENV, version=settings.VERSION)

        yield

        undelivered = await drain_reset_emails(timeout=settings.EMAIL_SEND_TIMEOUT_SECONDS)
        if undelivered:
            logger.warning("reset_emails_abandoned_on_shutdown", count=undelivered)

        redis = getattr(app.state, "redis", None)
        if redis is not None:
            await redis.aclose()
        await engine.dispose()
        logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
