"""Middleware configuration for the FastAPI application.

This module registers CORS and the request context middleware that binds a
correlation id to every log line emitted while a request is handled.
"""

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from resetgate.core.config.settings import Settings

REQUEST_ID_HEADER = "X-Request-ID"


def configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure all middleware for the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance
        settings (Settings): Settings providing the allowed CORS origins
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["Retry-After", REQUEST_ID_HEADER],
    )

    app.middleware("http")(request_context_middleware)


async def request_context_middleware(request: Request, call_next):
    """Bind a correlation id for the duration of the request.

    The id is taken from ``X-Request-ID`` when the caller sends one and is
    echoed back on the response.
    """
    correlation_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        correlation_id=correlation_id,
        method=request.method,
        path=request.url.path,
    )
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers[REQUEST_ID_HEADER] = correlation_id
    return response
