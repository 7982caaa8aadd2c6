from .password_policy import PasswordPolicy
from .reset_flow_controller import (
    MISSING_FIELDS_MESSAGE,
    REQUEST_ACCEPTED_MESSAGE,
    RESET_SUCCESS_MESSAGE,
    ResetFlowController,
    ResetOperation,
    drain_reset_emails,
)
from .token_authority import TokenAuthority

__all__ = [
    "PasswordPolicy",
    "ResetFlowController",
    "ResetOperation",
    "TokenAuthority",
    "MISSING_FIELDS_MESSAGE",
    "REQUEST_ACCEPTED_MESSAGE",
    "RESET_SUCCESS_MESSAGE",
    "drain_reset_emails",
]
