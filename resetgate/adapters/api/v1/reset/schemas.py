"""Request and response models for the password reset endpoints."""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ResetRequestPayload(BaseModel):
    """Payload expected by ``POST /reset/request``."""

    email: EmailStr = Field(..., examples=["jane@example.com"])


class ConsumeResetPayload(BaseModel):
    """Payload expected by ``POST /reset/consume``.

    ``password`` is accepted as an alias of ``newPassword``. Presence and
    password rules are checked by the reset flow so that a weak password
    counts as an attempt against the token.
    """

    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = Field(default=None, examples=["9f86d081884c7d65..."])
    new_password: Any = Field(
        default=None,
        validation_alias=AliasChoices("newPassword", "password"),
        serialization_alias="newPassword",
        examples=["n3wPassword"],
    )


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    message: str


class VerifyResponse(BaseModel):
    valid: bool
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    message: str
    code: str
