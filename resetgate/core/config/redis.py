"""
Redis and rate limiter backend settings.
"""
import logging

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class RedisSettings(BaseSettings):
    """
    Defines settings for the Redis connection and the rate limiter backend.

    Redis is only contacted when RATE_LIMIT_BACKEND is ``redis``. The default
    ``memory`` backend keeps counters in the process, which is correct for a
    single instance and for the test suite.

    Security Note:
        - REDIS_PASSWORD must be set in production to prevent unauthorized access.
        - Use rediss:// (REDIS_SSL) when Redis is reached over an untrusted network.
    """
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = Field(ge=1, le=65535, default=6379)
    REDIS_PASSWORD: SecretStr = SecretStr("")
    REDIS_SSL: bool = False
    REDIS_SOCKET_TIMEOUT: float = Field(gt=0, default=2.0)
    REDIS_URL: str = Field(default="", validate_default=True)

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_BACKEND: str = Field(default="memory", pattern="^(memory|redis)$")
    RATE_LIMIT_KEY_PREFIX: str = "resetgate:rl"

    @field_validator("REDIS_URL", mode="before")
    @classmethod
    def assemble_redis_url(cls, v: str | None, info: ValidationInfo) -> str:
        """
        Assembles the Redis connection URL if not provided explicitly.

        Args:
            v: Explicitly provided URL or None.
            info: Validation context with other field values.

        Returns:
            Assembled or provided Redis URL.
        """
        if v:
            return v

        values = info.data
        protocol = "rediss" if values.get("REDIS_SSL") else "redis"
        redis_password = values.get("REDIS_PASSWORD")
        secret = redis_password.get_secret_value() if redis_password else ""
        password = f":{secret}@" if secret else ""

        url = f"{protocol}://{password}{values.get('REDIS_HOST')}:{values.get('REDIS_PORT')}/0"
        logger.debug("Assembled REDIS_URL (password masked for security).")
        return url
