"""Token consumption endpoint.

Sets a new password using a reset token. Rate limits apply per client IP and
per token; a password that fails the policy also counts as an attempt
against the token.
"""

from fastapi import APIRouter, Depends, Request, status

from resetgate.adapters.api.v1.reset.dependencies import ip_rate_limit
from resetgate.adapters.api.v1.reset.schemas import ConsumeResetPayload, ErrorResponse, MessageResponse
from resetgate.adapters.api.v1.reset.utils import openapi_json_body, read_json_body
from resetgate.domain.services.password_reset.reset_flow_controller import (
    MISSING_FIELDS_MESSAGE,
    ResetFlowController,
    ResetOperation,
)
from resetgate.infrastructure.dependency_injection.reset_dependencies import (
    get_reset_flow_controller,
)

router = APIRouter()


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Set a new password with a reset token",
    openapi_extra=openapi_json_body(ConsumeResetPayload),
    responses={
        400: {"model": ErrorResponse, "description": "Missing fields, policy violation, or invalid token"},
        429: {"model": ErrorResponse, "description": "IP or token rate limited"},
        500: {"model": ErrorResponse, "description": "The credential store could not be updated"},
    },
)
async def consume_token(
    request: Request,
    client_ip: str = Depends(ip_rate_limit(ResetOperation.CONSUME)),
    controller: ResetFlowController = Depends(get_reset_flow_controller),
) -> MessageResponse:
    """Replace the account password and retire the token.

    Raises:
        ValidationError: If the token or the new password is missing.
        RateLimitedError: If the IP or the token exhausted its bucket.
        TokenInvalidOrExpiredError: If the token is not live.
        PolicyViolationError: If the new password breaks a rule.
        DownstreamFailureError: If the password could not be stored.
    """
    payload = await read_json_body(request, ConsumeResetPayload, MISSING_FIELDS_MESSAGE)
    message = await controller.consume_token(payload.token, payload.new_password)
    return MessageResponse(message=message)
