"""Structured logging with per-request ids."""
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from tools_hub.settings import settings


class JSONFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add request_id if present
        if hasattr(record, 'request_id'):
            log_data['request_id'] = record.request_id

        # Add extra fields
        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        # Add exception info if present
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request's start, outcome and duration, and tags it with an id."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger = logging.getLogger("tools_hub.requests")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse the caller's request id or generate one
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        # Start timing
        start_time = time.time()

        extra = {
            'request_id': request_id,
            'extra_fields': {
                'method': request.method,
                'path': request.url.path,
                'client_ip': request.client.host if request.client else None,
            }
        }

        # Log request start
        self.logger.info(f"Request started: {request.method} {request.url.path}", extra=extra)

        try:
            response = await call_next(request)

            duration_ms = (time.time() - start_time) * 1000
            extra['extra_fields']['status_code'] = response.status_code
            extra['extra_fields']['duration_ms'] = round(duration_ms, 2)

            self.logger.info(
                f"Request completed: {request.method} {request.url.path} - {response.status_code}",
                extra=extra
            )

            # Add request ID to response headers
            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as e:
            # Log error
            duration_ms = (time.time() - start_time) * 1000
            extra['extra_fields']['duration_ms'] = round(duration_ms, 2)
            extra['extra_fields']['error'] = str(e)

            self.logger.error(
                f"Request failed: {request.method} {request.url.path} - {e}",
                extra=extra,
                exc_info=True
            )
            raise


def setup_logging():
    """Configure the root logger from settings."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper()))

    # Remove existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    if settings.LOG_FORMAT == "json":
        console_handler.setFormatter(JSONFormatter())
    else:
        # Text format for development
        console_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
    root_logger.addHandler(console_handler)

    # Optional file handler
    if settings.LOG_FILE:
        file_handler = logging.FileHandler(settings.LOG_FILE)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    # httpx logs every outbound request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.info(f"Logging configured: level={settings.LOG_LEVEL}, format={settings.LOG_FORMAT}")
