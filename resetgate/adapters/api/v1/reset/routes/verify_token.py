"""Token verification endpoint.

Used by the front-end to decide whether to show the new-password form. It
only looks the token up; nothing is counted against the token itself.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from resetgate.adapters.api.v1.reset.schemas import VerifyResponse
from resetgate.adapters.api.v1.reset.utils import get_client_ip
from resetgate.core.exceptions import (
    DownstreamFailureError,
    RateLimitedError,
    TokenInvalidOrExpiredError,
)
from resetgate.domain.services.password_reset.reset_flow_controller import (
    ResetFlowController,
    ResetOperation,
)
from resetgate.infrastructure.dependency_injection.reset_dependencies import (
    get_reset_flow_controller,
)

router = APIRouter()

MISSING_TOKEN_MESSAGE = "Invalid token"


def _invalid(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"valid": False, "message": message},
        headers=headers,
    )


@router.get(
    "",
    response_model=VerifyResponse,
    response_model_exclude_none=True,
    summary="Check whether a reset token is still usable",
    responses={
        400: {"model": VerifyResponse, "description": "Token missing, unknown or expired"},
        429: {"model": VerifyResponse, "description": "IP rate limited"},
    },
)
async def verify_token(
    request: Request,
    token: Optional[str] = Query(default=None),
    controller: ResetFlowController = Depends(get_reset_flow_controller),
):
    client_ip = get_client_ip(request, request.app.state.settings.TRUST_PROXY_HEADERS)
    try:
        await controller.enforce_ip_limit(ResetOperation.VERIFY, client_ip)
    except RateLimitedError as exc:
        return _invalid(
            status.HTTP_429_TOO_MANY_REQUESTS,
            exc.message,
            headers={"Retry-After": str(exc.retry_after)},
        )

    if not token:
        return _invalid(status.HTTP_400_BAD_REQUEST, MISSING_TOKEN_MESSAGE)

    try:
        await controller.verify_token(token)
    except TokenInvalidOrExpiredError as exc:
        return _invalid(status.HTTP_400_BAD_REQUEST, exc.message)
    except DownstreamFailureError:
        return _invalid(status.HTTP_500_INTERNAL_SERVER_ERROR, MISSING_TOKEN_MESSAGE)

    return VerifyResponse(valid=True)
