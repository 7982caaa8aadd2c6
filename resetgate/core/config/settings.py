"""Main application settings and configuration management.

This module composes all the application settings from the different modules
(app, database, redis, email, password reset) into a single `Settings` class.

It loads settings from environment variables and .env files and validates them.
`get_settings()` returns the cached instance used by the running service;
tests build `Settings(...)` directly with their own overrides.

Environment Support:
- Development: Uses .env, emails are logged instead of sent
- Test: Uses .env.test, emails are logged instead of sent
- Staging: Uses .env.staging, SMTP credentials required
- Production: Uses .env.production, SMTP credentials required
"""

import logging
import os
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import SettingsConfigDict

from .app import AppSettings
from .database import DatabaseSettings
from .email import EmailSettings
from .password_reset import PasswordResetSettings
from .redis import RedisSettings

logger = logging.getLogger(__name__)
logging.getLogger("passlib").setLevel(logging.ERROR)

ENV_FILES = {
    "development": ".env",
    "test": ".env.test",
    "staging": ".env.staging",
    "production": ".env.production",
}


class Settings(AppSettings, DatabaseSettings, RedisSettings, EmailSettings, PasswordResetSettings):
    """The main settings class that aggregates all application configurations.

    Environment Support:
        - Development/Test: EMAIL_TEST_MODE defaults to on unless set explicitly
        - Staging/Production: SMTP credentials are validated at startup

    Security Note:
        - Secrets (database, Redis and SMTP passwords) are SecretStr and are
          never logged.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    def __init__(self, **kwargs):
        """Initialize settings with environment-specific defaults."""
        super().__init__(**kwargs)
        self._set_environment_defaults(self.APP_ENV)

    def _set_environment_defaults(self, env: str) -> None:
        """Set environment-specific default values.

        Args:
            env: Environment name
        """
        if env in ("development", "test") and "EMAIL_TEST_MODE" not in self.model_fields_set:
            self.EMAIL_TEST_MODE = True

        if env == "development" and "DEBUG" not in self.model_fields_set:
            self.DEBUG = True

        logger.debug(
            "Settings loaded for %s environment (email test mode: %s, debug: %s)",
            env,
            self.EMAIL_TEST_MODE,
            self.DEBUG,
        )

    @model_validator(mode="after")
    def check_password_bounds(self) -> "Settings":
        if self.PASSWORD_MIN_LENGTH > self.PASSWORD_MAX_LENGTH:
            raise ValueError("PASSWORD_MIN_LENGTH must not exceed PASSWORD_MAX_LENGTH")
        return self

    def validate_required_fields(self) -> None:
        """Validates the configuration that only matters outside development.

        Raises:
            ValueError: If SMTP configuration is missing in staging/production,
                or Redis has no password while used as the rate limit backend there.
        """
        self.validate_smtp_config()

        if (
            self.APP_ENV in ("staging", "production")
            and self.RATE_LIMIT_BACKEND == "redis"
            and not self.REDIS_PASSWORD.get_secret_value()
        ):
            logger.error("REDIS_PASSWORD must be set in %s environment.", self.APP_ENV)
            raise ValueError("REDIS_PASSWORD must be set in staging/production environments")


def create_settings() -> Settings:
    """Create settings instance with environment-specific configuration.

    Returns:
        Settings: Configured settings instance
    """
    env = os.getenv("APP_ENV", "development")
    env_file = ENV_FILES.get(env, ".env")

    if env != "development" and Path(env_file).exists():
        logger.info("Loading environment configuration from %s", env_file)
        settings_instance = Settings(_env_file=env_file)
    elif Path(".env").exists():
        logger.info("Loading environment configuration from .env (environment: %s)", env)
        settings_instance = Settings()
    else:
        logger.info("No .env file found, using environment variables only (environment: %s)", env)
        settings_instance = Settings()

    settings_instance.validate_required_fields()
    return settings_instance


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return create_settings()
