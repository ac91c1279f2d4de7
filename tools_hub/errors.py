"""Domain errors and their HTTP rendering.

Services raise these; the handlers registered in ``tools_hub.main`` turn them
into ``{"success": false, "error": ...}`` responses with the matching status.
"""
import logging
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ToolsHubError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(ToolsHubError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class Forbidden(ToolsHubError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Unauthorized"


class NotFound(ToolsHubError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Tool not found"


class InvalidInput(ToolsHubError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class InvalidState(ToolsHubError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Operation not allowed in the current state"


class Conflict(ToolsHubError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "The tool list was modified by another request. Please retry."


class StoreUnavailable(ToolsHubError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Database not configured"


class Gone(ToolsHubError):
    status_code = status.HTTP_410_GONE
    default_message = "Verification code expired"


class RateLimited(ToolsHubError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."


class DependencyFailure(ToolsHubError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Upstream service failed"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def tools_hub_error_handler(request: Request, exc: ToolsHubError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
            extra={'request_id': getattr(request.state, 'request_id', None)}
        )
    return error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    response = error_response(exc.status_code, detail)
    if getattr(exc, "headers", None):
        response.headers.update(exc.headers)
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies are reported as 400 with the first failing field."""
    errors = exc.errors()
    message = "Invalid request body"
    if errors:
        first = errors[0]
        path = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid value for '{path}': {first.get('msg', 'invalid')}" if path else first.get("msg", message)
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        extra={'request_id': getattr(request.state, 'request_id', None)},
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
