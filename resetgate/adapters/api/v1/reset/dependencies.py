"""Per-IP rate limit dependencies for the reset endpoints."""

from typing import Awaitable, Callable

from fastapi import Depends, Request

from resetgate.adapters.api.v1.reset.utils import get_client_ip
from resetgate.domain.services.password_reset.reset_flow_controller import (
    ResetFlowController,
    ResetOperation,
)
from resetgate.infrastructure.dependency_injection.reset_dependencies import (
    get_reset_flow_controller,
)


def ip_rate_limit(operation: ResetOperation) -> Callable[..., Awaitable[str]]:
    """Return a FastAPI dependency that counts the caller against the IP bucket of ``operation``.

    The dependency resolves to the client IP so routes do not resolve it twice.
    """

    async def _dependency(
        request: Request,
        controller: ResetFlowController = Depends(get_reset_flow_controller),
    ) -> str:
        client_ip = get_client_ip(request, request.app.state.settings.TRUST_PROXY_HEADERS)
        await controller.enforce_ip_limit(operation, client_ip)
        return client_ip

    return _dependency
