import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from resetgate.core.exceptions import (
    DatabaseError,
    DownstreamFailureError,
    EmailServiceError,
    PolicyViolationError,
    RateLimitedError,
    ResetGateError,
    TokenInvalidOrExpiredError,
    ValidationError,
)
from resetgate.core.handlers import register_exception_handlers


@pytest.fixture
def error_app():
    app = FastAPI()
    register_exception_handlers(app)

    errors = {
        "rate": RateLimitedError(retry_after=30, bucket="reset:verify:ip"),
        "validation": ValidationError("A valid email is required"),
        "token": TokenInvalidOrExpiredError(),
        "policy": PolicyViolationError("Password must include at least 1 letter and 1 number"),
        "downstream": DownstreamFailureError(),
        "database": DatabaseError("connection reset by peer"),
        "email": EmailServiceError("SMTP unreachable"),
        "other": ResetGateError("Something odd", "odd_error"),
    }

    @app.get("/raise/{name}")
    async def raise_error(name: str):
        raise errors[name]

    @app.get("/typed")
    async def typed(count: int):
        return {"count": count}

    return app


@pytest.fixture
async def client(error_app):
    async with AsyncClient(transport=ASGITransport(app=error_app), base_url="http://test") as c:
        yield c


@pytest.mark.parametrize(
    "name, status_code, body",
    [
        ("validation", 400, {"message": "A valid email is required", "code": "validation_error"}),
        ("token", 400, {"message": "Token is invalid or expired", "code": "token_invalid_or_expired"}),
        (
            "policy",
            400,
            {"message": "Password must include at least 1 letter and 1 number", "code": "password_policy_violation"},
        ),
        ("downstream", 500, {"message": "Failed to reset password", "code": "downstream_failure"}),
        ("database", 500, {"message": "Internal server error", "code": "database_error"}),
        ("email", 500, {"message": "Internal server error", "code": "email_service_error"}),
        ("other", 400, {"message": "Something odd", "code": "odd_error"}),
    ],
)
async def test_error_mapping(client, name, status_code, body):
    response = await client.get(f"/raise/{name}")

    assert response.status_code == status_code
    assert response.json() == body


async def test_rate_limited_sets_retry_after(client):
    response = await client.get("/raise/rate")

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "30"
    assert response.json()["code"] == "rate_limited"


async def test_request_validation_is_400(client):
    response = await client.get("/typed", params={"count": "many"})

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid request", "code": "validation_error"}


def test_rate_limited_retry_after_never_negative():
    assert RateLimitedError(retry_after=-5).retry_after == 0
