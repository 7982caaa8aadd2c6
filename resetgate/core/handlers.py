"""
Global exception handlers for the FastAPI application.

This module translates the application's exception hierarchy into HTTP
responses. Every error body has the shape ``{"message": ..., "code": ...}``.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from structlog import get_logger

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

__all__ = [
    "rate_limited_error_handler",
    "bad_request_error_handler",
    "request_validation_error_handler",
    "downstream_failure_error_handler",
    "infrastructure_error_handler",
    "resetgate_error_handler",
    "unhandled_exception_handler",
    "register_exception_handlers",
]

logger = get_logger(__name__)


def _error_body(exc: ResetGateError) -> dict:
    return {"message": exc.message, "code": exc.code}


async def rate_limited_error_handler(request: Request, exc: RateLimitedError) -> JSONResponse:
    """Handles `RateLimitedError`, returning `429 Too Many Requests` with `Retry-After`."""
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=_error_body(exc),
        headers={"Retry-After": str(exc.retry_after)},
    )


async def bad_request_error_handler(request: Request, exc: ResetGateError) -> JSONResponse:
    """Handles caller errors (validation, invalid token, policy), returning `400 Bad Request`."""
    logger.info("Request rejected", error=exc.code, path=request.url.path)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(exc))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handles FastAPI's `RequestValidationError`, returning `400` instead of `422`.

    Field details are not echoed back: they can contain the submitted password.
    """
    logger.info(
        "Request validation failed",
        path=request.url.path,
        fields=[".".join(str(part) for part in error.get("loc", ())) for error in exc.errors()],
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request", "code": "validation_error"},
    )


async def downstream_failure_error_handler(request: Request, exc: DownstreamFailureError) -> JSONResponse:
    """Handles `DownstreamFailureError`, returning `500 Internal Server Error`."""
    logger.error("Downstream failure", error=exc.code, path=request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_body(exc))


async def infrastructure_error_handler(request: Request, exc: ResetGateError) -> JSONResponse:
    """Handles database and email errors that escaped the domain layer.

    The original message stays in the logs; the caller gets a generic one.
    """
    logger.error("Infrastructure error", error=exc.code, error_message=exc.message, path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error", "code": exc.code},
    )


async def resetgate_error_handler(request: Request, exc: ResetGateError) -> JSONResponse:
    """Fallback for any other `ResetGateError`, returning `400 Bad Request`."""
    logger.warning("Unclassified application error", error=exc.code, path=request.url.path)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(exc))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for unexpected exceptions, returning a generic `500`."""
    logger.exception("Unhandled exception", path=request.url.path, error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error", "code": "internal_error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Starlette picks the handler registered for the most specific class in
    the exception's MRO, so registration order does not matter.
    """
    app.add_exception_handler(RateLimitedError, rate_limited_error_handler)
    app.add_exception_handler(ValidationError, bad_request_error_handler)
    app.add_exception_handler(TokenInvalidOrExpiredError, bad_request_error_handler)
    app.add_exception_handler(PolicyViolationError, bad_request_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(DownstreamFailureError, downstream_failure_error_handler)
    app.add_exception_handler(DatabaseError, infrastructure_error_handler)
    app.add_exception_handler(EmailServiceError, infrastructure_error_handler)
    app.add_exception_handler(ResetGateError, resetgate_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
