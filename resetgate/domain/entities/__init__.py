from .password_reset_token import PasswordResetToken
from .user import User

__all__ = ["PasswordResetToken", "User"]
