"""Password reset router package: request, verify and consume endpoints."""

from fastapi import APIRouter

from .routes import consume_token as consume_token_route
from .routes import request_reset as request_reset_route
from .routes import verify_token as verify_token_route

router = APIRouter(prefix="/reset", tags=["password-reset"])

router.include_router(request_reset_route.router, prefix="/request")
router.include_router(verify_token_route.router, prefix="/verify")
router.include_router(consume_token_route.router, prefix="/consume")

__all__ = ["router"]
