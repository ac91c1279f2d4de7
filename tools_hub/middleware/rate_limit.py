"""Sliding-window rate limiting for the login endpoints."""
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from tools_hub.settings import settings


@dataclass
class RateLimitBucket:
    """Request timestamps inside the current window."""
    requests: list = field(default_factory=list)


class RateLimiter:
    """In-memory rate limiter using a sliding window.

    Buckets are keyed by an arbitrary client identifier, so the same limiter
    serves per-IP limits in the middleware and per-email limits on login codes.
    """

    def __init__(self):
        # {endpoint: {client_key: RateLimitBucket}}
        self.buckets: Dict[str, Dict[str, RateLimitBucket]] = defaultdict(
            lambda: defaultdict(RateLimitBucket)
        )
        self.logger = logging.getLogger("tools_hub.ratelimit")

    def is_allowed(
        self,
        client_key: str,
        endpoint: str,
        max_requests: int,
        window_seconds: int
    ) -> Tuple[bool, int]:
        """
        Check if a request is allowed under the rate limit, recording it if so.

        Args:
            client_key: Client IP address or other caller identity
            endpoint: Endpoint or action identifier
            max_requests: Maximum requests allowed in window
            window_seconds: Time window in seconds

        Returns:
            Tuple of (is_allowed, retry_after_seconds)
        """
        now = time.time()
        bucket = self.buckets[endpoint][client_key]

        # Remove expired timestamps
        bucket.requests = [ts for ts in bucket.requests if now - ts < window_seconds]

        # Check if under limit
        if len(bucket.requests) < max_requests:
            bucket.requests.append(now)
            return True, 0

        # Calculate retry after
        oldest_request = min(bucket.requests)
        retry_after = int(window_seconds - (now - oldest_request)) + 1
        return False, retry_after

    def reset(self):
        """Reset all buckets (for testing)."""
        self.buckets.clear()


# Global rate limiter instance
rate_limiter = RateLimiter()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP limits on the login-code endpoints."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = logging.getLogger("tools_hub.ratelimit")

        # Define rate limit rules
        self.rate_limits = {
            "/api/auth/send-otp": (
                settings.RATE_LIMIT_AUTH_REQUESTS,
                settings.RATE_LIMIT_AUTH_WINDOW
            ),
            "/api/auth/verify-otp": (
                settings.RATE_LIMIT_AUTH_REQUESTS,
                settings.RATE_LIMIT_AUTH_WINDOW
            ),
        }

    async def dispatch(self, request: Request, call_next):
        # Skip if rate limiting disabled
        if not settings.RATE_LIMIT_ENABLED:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        path = request.url.path

        if path in self.rate_limits:
            max_requests, window_seconds = self.rate_limits[path]

            # Check rate limit
            allowed, retry_after = rate_limiter.is_allowed(
                client_key=client_ip,
                endpoint=path,
                max_requests=max_requests,
                window_seconds=window_seconds
            )

            if not allowed:
                self.logger.warning(
                    f"Rate limit exceeded for {client_ip} on {path}",
                    extra={
                        'request_id': getattr(request.state, 'request_id', None),
                        'extra_fields': {
                            'client_ip': client_ip,
                            'endpoint': path,
                            'retry_after': retry_after
                        }
                    }
                )

                # Return 429 Too Many Requests
                return JSONResponse(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    content={
                        "success": False,
                        "error": f"Rate limit exceeded. Try again in {retry_after} seconds.",
                    },
                    headers={"Retry-After": str(retry_after)}
                )

        # Process request
        return await call_next(request)
