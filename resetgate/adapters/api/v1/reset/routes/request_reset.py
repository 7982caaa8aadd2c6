"""Reset request endpoint.

Answers every well-formed request with the same message, whether or not the
email belongs to an account, so the endpoint cannot be used to enumerate
accounts. Rate limits apply per client IP and per email address.
"""

from fastapi import APIRouter, Depends, Request, status

from resetgate.adapters.api.v1.reset.dependencies import ip_rate_limit
from resetgate.adapters.api.v1.reset.schemas import ErrorResponse, MessageResponse, ResetRequestPayload
from resetgate.adapters.api.v1.reset.utils import openapi_json_body, read_json_body
from resetgate.domain.services.password_reset.reset_flow_controller import (
    ResetFlowController,
    ResetOperation,
)
from resetgate.infrastructure.dependency_injection.reset_dependencies import (
    get_reset_flow_controller,
)

router = APIRouter()

INVALID_EMAIL_MESSAGE = "A valid email is required"


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Request a password reset link",
    openapi_extra=openapi_json_body(ResetRequestPayload),
    responses={
        400: {"model": ErrorResponse, "description": "Missing or malformed email"},
        429: {"model": ErrorResponse, "description": "IP or email rate limited"},
    },
)
async def request_reset(
    request: Request,
    client_ip: str = Depends(ip_rate_limit(ResetOperation.REQUEST)),
    controller: ResetFlowController = Depends(get_reset_flow_controller),
) -> MessageResponse:
    """Send a reset link to the address if it belongs to an active account.

    Raises:
        ValidationError: If the body has no valid email.
        RateLimitedError: If the IP or the email exhausted its bucket.
    """
    payload = await read_json_body(request, ResetRequestPayload, INVALID_EMAIL_MESSAGE)
    message = await controller.request_reset(payload.email, client_ip)
    return MessageResponse(message=message)
