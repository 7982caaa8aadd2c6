"""Helpers shared by the password reset routes."""

import json
from typing import Type, TypeVar

from fastapi import Request
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from resetgate.core.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

PROXY_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def get_client_ip(request: Request, trust_proxy_headers: bool = False) -> str:
    """Resolve the address a request should be rate limited under.

    With proxy headers trusted the order is: first entry of X-Forwarded-For,
    X-Real-IP, CF-Connecting-IP. Otherwise, or when none is present, the
    socket peer is used, and ``"unknown"`` when even that is missing.
    """
    if trust_proxy_headers:
        for header in PROXY_HEADERS:
            value = request.headers.get(header)
            if value:
                candidate = value.split(",")[0].strip()
                if candidate:
                    return candidate
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def read_json_body(request: Request, model: Type[ModelT], message: str) -> ModelT:
    """Parse and validate the JSON body of ``request`` into ``model``.

    Routes call this after their rate limit dependency so that malformed
    bodies are counted before they are rejected.

    Raises:
        ValidationError: With ``message`` if the body is not JSON or does not validate.
    """
    raw = await request.body()
    try:
        data = json.loads(raw) if raw else {}
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError(message) from exc
    if not isinstance(data, dict):
        raise ValidationError(message)
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(message) from exc


def openapi_json_body(model: Type[BaseModel]) -> dict:
    """``openapi_extra`` documenting a body the route parses itself."""
    return {
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": model.model_json_schema()}},
        }
    }
