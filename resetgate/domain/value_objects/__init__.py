from .password import PolicyResult
from .rate_limit import RateLimitResult, RateLimitRule
from .reset_token import IssuedResetToken

__all__ = ["PolicyResult", "RateLimitResult", "RateLimitRule", "IssuedResetToken"]
