"""Unit tests for the composed application settings."""

import pytest
from pydantic import SecretStr

from resetgate.core.config.settings import Settings


def build(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestDefaults:
    def test_reset_defaults(self):
        settings = build(APP_ENV="test")

        assert settings.RESET_TOKEN_TTL_SECONDS == 3600
        assert settings.RESET_MAX_ATTEMPTS == 5
        assert settings.PASSWORD_MIN_LENGTH == 8
        assert settings.PASSWORD_MAX_LENGTH == 128
        assert (settings.RESET_REQUEST_IP_LIMIT, settings.RESET_REQUEST_IP_WINDOW_SECONDS) == (10, 60)
        assert (settings.RESET_REQUEST_EMAIL_LIMIT, settings.RESET_REQUEST_EMAIL_WINDOW_SECONDS) == (3, 3600)
        assert (settings.RESET_VERIFY_IP_LIMIT, settings.RESET_VERIFY_IP_WINDOW_SECONDS) == (30, 60)
        assert (settings.RESET_CONSUME_IP_LIMIT, settings.RESET_CONSUME_IP_WINDOW_SECONDS) == (10, 60)
        assert (settings.RESET_CONSUME_TOKEN_LIMIT, settings.RESET_CONSUME_TOKEN_WINDOW_SECONDS) == (10, 900)

    def test_test_environment_logs_emails_by_default(self):
        assert build(APP_ENV="test").EMAIL_TEST_MODE is True

    def test_explicit_email_test_mode_is_kept(self):
        assert build(APP_ENV="test", EMAIL_TEST_MODE=False).EMAIL_TEST_MODE is False

    def test_development_enables_debug(self):
        assert build(APP_ENV="development").DEBUG is True
        assert build(APP_ENV="development", DEBUG=False).DEBUG is False

    def test_database_command_timeout(self):
        assert build(APP_ENV="test").DATABASE_COMMAND_TIMEOUT == 10.0
        assert build(APP_ENV="test", DATABASE_COMMAND_TIMEOUT=2.5).DATABASE_COMMAND_TIMEOUT == 2.5

    def test_proxy_headers_untrusted_by_default(self):
        assert build(APP_ENV="test").TRUST_PROXY_HEADERS is False


class TestUrlAssembly:
    def test_database_url_assembled_from_parts(self):
        settings = build(
            APP_ENV="test",
            POSTGRES_USER="svc",
            POSTGRES_PASSWORD=SecretStr("pw"),
            POSTGRES_HOST="db",
            POSTGRES_PORT=5433,
            POSTGRES_DB="users",
        )

        assert settings.DATABASE_URL == "postgresql+asyncpg://svc:pw@db:5433/users"

    def test_explicit_database_url_wins(self):
        settings = build(APP_ENV="test", DATABASE_URL="sqlite+aiosqlite:///./x.db")

        assert settings.DATABASE_URL == "sqlite+aiosqlite:///./x.db"

    def test_redis_url_uses_tls_scheme(self):
        settings = build(APP_ENV="test", REDIS_HOST="cache", REDIS_SSL=True, REDIS_PASSWORD=SecretStr("s3"))

        assert settings.REDIS_URL == "rediss://:s3@cache:6379/0"


class TestValidation:
    def test_origins_split_on_commas(self):
        settings = build(APP_ENV="test", ALLOWED_ORIGINS="https://a.example, https://b.example")

        assert settings.ALLOWED_ORIGINS == ["https://a.example", "https://b.example"]

    @pytest.mark.parametrize("raw, expected", [("api/", "/api"), ("/v1", "/v1"), ("", "")])
    def test_api_prefix_normalized(self, raw, expected):
        assert build(APP_ENV="test", API_PREFIX=raw).API_PREFIX == expected

    def test_rejects_unknown_environment(self):
        with pytest.raises(ValueError):
            build(APP_ENV="qa")

    def test_rejects_inverted_password_bounds(self):
        with pytest.raises(ValueError):
            build(APP_ENV="test", PASSWORD_MIN_LENGTH=20, PASSWORD_MAX_LENGTH=10)

    @pytest.mark.parametrize("timeout", [0, -1.0])
    def test_rejects_non_positive_command_timeout(self, timeout):
        with pytest.raises(ValueError):
            build(APP_ENV="test", DATABASE_COMMAND_TIMEOUT=timeout)

    def test_production_requires_smtp_credentials(self):
        settings = build(APP_ENV="production")

        with pytest.raises(ValueError, match="SMTP_USERNAME"):
            settings.validate_required_fields()

    def test_production_requires_redis_password_for_redis_backend(self):
        settings = build(
            APP_ENV="production",
            SMTP_USERNAME="mailer",
            SMTP_PASSWORD=SecretStr("secret"),
            RATE_LIMIT_BACKEND="redis",
        )

        with pytest.raises(ValueError, match="REDIS_PASSWORD"):
            settings.validate_required_fields()

    def test_production_with_memory_backend_passes(self):
        settings = build(
            APP_ENV="production",
            SMTP_USERNAME="mailer",
            SMTP_PASSWORD=SecretStr("secret"),
        )

        settings.validate_required_fields()
