"""Application initialization and setup.

This module handles the tasks that run before the application starts
(environment loading, logging) and builds the long-lived collaborators the
request handlers share through ``app.state``.
"""

from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from redis.asyncio import Redis
from structlog import get_logger

from resetgate.core.config.settings import Settings, get_settings
from resetgate.core.logging import configure_logging
from resetgate.core.rate_limiting import InMemoryCounterStore, RateLimiter, RedisCounterStore
from resetgate.infrastructure.database.async_db import build_engine, build_session_factory
from resetgate.infrastructure.redis import create_redis_client
from resetgate.infrastructure.services.email import PasswordResetEmailComposer, SmtpMailTransport
from resetgate.infrastructure.services.password_hasher import BcryptPasswordHasher

logger = get_logger(__name__)


def initialize_application() -> Settings:
    """Load the environment, configure logging and return the settings.

    Variables already present in the process environment win over `.env`.
    """
    load_dotenv(override=False)
    settings = get_settings()
    configure_logging(log_level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    return settings


def create_rate_limiter(settings: Settings, redis: Optional[Redis] = None) -> RateLimiter:
    """Build the shared limiter for the configured backend.

    The Redis backend keeps a process-local store as fallback so an outage
    degrades to per-instance limits instead of disabling them.
    """
    if settings.RATE_LIMIT_BACKEND == "redis" and redis is not None:
        return RateLimiter(
            RedisCounterStore(redis, key_prefix=settings.RATE_LIMIT_KEY_PREFIX),
            fallback_store=InMemoryCounterStore(),
            enabled=settings.RATE_LIMIT_ENABLED,
        )
    return RateLimiter(enabled=settings.RATE_LIMIT_ENABLED)


def attach_services(app: FastAPI, settings: Settings) -> None:
    """Create the shared collaborators and store them on ``app.state``."""
    app.state.settings = settings

    engine = build_engine(settings)
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    app.state.redis = create_redis_client(settings) if settings.RATE_LIMIT_BACKEND == "redis" else None
    app.state.rate_limiter = create_rate_limiter(settings, app.state.redis)

    app.state.mail_transport = SmtpMailTransport(settings)
    app.state.email_composer = PasswordResetEmailComposer(settings.EMAIL_TEMPLATES_DIR, settings.PROJECT_NAME)
    app.state.password_hasher = BcryptPasswordHasher(settings.BCRYPT_ROUNDS)

    logger.info(
        "Application services attached",
        rate_limit_backend=settings.RATE_LIMIT_BACKEND,
        rate_limit_enabled=settings.RATE_LIMIT_ENABLED,
        email_test_mode=settings.EMAIL_TEST_MODE,
    )
