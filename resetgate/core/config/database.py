"""
Database connection settings.
"""
import logging

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class DatabaseSettings(BaseSettings):
    """
    Defines settings for connecting to the user store database.

    The service talks to PostgreSQL through asyncpg in deployment. Any
    SQLAlchemy async URL is accepted in DATABASE_URL, which is how the test
    suite points the service at SQLite through aiosqlite.

    Security Note:
        - POSTGRES_PASSWORD must be securely stored and never logged or
          exposed in version control.
    Performance Note:
        - Tune POSTGRES_POOL_SIZE and POSTGRES_MAX_OVERFLOW based on load.
        - DATABASE_POOL_TIMEOUT bounds how long a request waits for a
          connection before the store call fails.
        - DATABASE_COMMAND_TIMEOUT bounds a single statement, so a stalled
          database fails the request instead of holding its connection.
    """
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: SecretStr = SecretStr("postgres")
    POSTGRES_DB: str = "resetgate"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = Field(ge=1, le=65535, default=5432)
    POSTGRES_POOL_SIZE: int = Field(ge=1, default=10)
    POSTGRES_MAX_OVERFLOW: int = Field(ge=0, default=20)
    DATABASE_POOL_TIMEOUT: float = Field(gt=0, default=30.0)
    DATABASE_COMMAND_TIMEOUT: float = Field(gt=0, default=10.0)
    DATABASE_ECHO: bool = False
    DATABASE_CONNECT_RETRIES: int = Field(ge=1, default=5)
    DATABASE_URL: str = Field(default="", validate_default=True)

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def assemble_db_url(cls, v: str | None, info: ValidationInfo) -> str:
        """
        Assembles the asyncpg connection URL if not provided explicitly.

        Args:
            v: Explicitly provided URL or None.
            info: Validation context with other field values.

        Returns:
            Assembled or provided database URL.
        """
        if v:
            return v

        values = info.data
        password = values.get("POSTGRES_PASSWORD")
        if password is None:
            logger.warning("POSTGRES_PASSWORD not set during DATABASE_URL assembly.")
            secret = ""
        else:
            secret = password.get_secret_value()

        url = (
            f"postgresql+asyncpg://{values.get('POSTGRES_USER')}:"
            f"{secret}@{values.get('POSTGRES_HOST')}:"
            f"{values.get('POSTGRES_PORT')}/{values.get('POSTGRES_DB')}"
        )
        logger.debug("Assembled DATABASE_URL (password masked for security).")
        return url
