"""resetgate: token-based password reset service with layered rate limiting."""

__version__ = "0.1.0"
