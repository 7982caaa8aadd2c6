"""Application factory for creating and configuring the FastAPI application.

This module provides a factory function to create a properly configured FastAPI
application with all necessary middleware, exception handlers, shared services
and routers registered.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from resetgate.adapters.api.v1 import api_router
from resetgate.core.config.settings import Settings, get_settings
from resetgate.core.handlers import register_exception_handlers
from resetgate.core.initialization import attach_services
from resetgate.core.lifecycle import create_lifespan_manager
from resetgate.core.middleware import configure_middleware


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Explicit settings, mainly for tests. Defaults to the
            process-wide settings.

    Returns:
        FastAPI: The configured FastAPI application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Token-based password reset with layered rate limiting.",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=create_lifespan_manager(settings),
        default_response_class=JSONResponse,
    )

    attach_services(app, settings)
    configure_middleware(app, settings)
    register_exception_handlers(app)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    return app
