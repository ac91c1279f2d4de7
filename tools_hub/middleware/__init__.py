"""Request logging and rate limiting middleware."""
from .logging import RequestLoggingMiddleware, setup_logging
from .rate_limit import RateLimitMiddleware, rate_limiter

__all__ = [
    "RequestLoggingMiddleware",
    "setup_logging",
    "RateLimitMiddleware",
    "rate_limiter",
]
