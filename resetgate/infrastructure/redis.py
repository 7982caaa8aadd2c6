"""
Redis Connection Module

Redis backs the shared rate limit counters when RATE_LIMIT_BACKEND is
``redis``. One client (and its connection pool) is created at startup and
closed at shutdown by the application lifespan.

**Security Note**: Use rediss:// with a password whenever Redis is reachable
from outside a trusted network, and never log the connection URL.
"""

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from resetgate.core.config.settings import Settings

logger = logging.getLogger(__name__)


def create_redis_client(settings: Settings) -> Redis:
    """
    Build an asynchronous Redis client from settings.

    The client connects lazily, so creating it never blocks.
    """
    client = Redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
    )
    logger.debug("Redis client created")
    return client


async def check_redis_health(client: Redis) -> bool:
    """Return True if Redis answers PING."""
    try:
        return bool(await client.ping())
    except (RedisError, OSError) as exc:
        logger.error("redis_health_check_failed: %s", exc)
        return False
