import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from resetgate.core.application import create_application
from resetgate.core.config.settings import Settings
from resetgate.domain.services.password_reset import drain_reset_emails
from resetgate.infrastructure.database.async_db import create_db_and_tables
from resetgate.infrastructure.dependency_injection.reset_dependencies import get_mail_transport
from tests.utils.fakes import RecordingMailTransport


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file with fast hashing.

    Requests are treated as arriving through a proxy so tests can pick the
    client address with X-Forwarded-For.
    """
    return Settings(
        APP_ENV="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'resetgate.db'}",
        RATE_LIMIT_BACKEND="memory",
        RATE_LIMIT_ENABLED=True,
        EMAIL_TEST_MODE=True,
        BCRYPT_ROUNDS=4,
        LOG_JSON=False,
        API_PREFIX="",
        TRUST_PROXY_HEADERS=True,
    )


@pytest.fixture
def mail_transport() -> RecordingMailTransport:
    return RecordingMailTransport()


@pytest_asyncio.fixture
async def app(test_settings, mail_transport):
    application = create_application(test_settings)
    await create_db_and_tables(application.state.engine)
    application.dependency_overrides[get_mail_transport] = lambda: mail_transport
    yield application
    application.dependency_overrides.clear()
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def async_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def db_session(app):
    async with app.state.session_factory() as session:
        yield session


@pytest_asyncio.fixture(autouse=True)
async def _settle_reset_emails():
    """Finish background reset emails before the test's event loop closes."""
    yield
    await drain_reset_emails()
