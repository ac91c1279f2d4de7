"""FastAPI application entrypoint."""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tools_hub.errors import (
    ToolsHubError,
    http_exception_handler,
    tools_hub_error_handler,
    unhandled_exception_handler,
    validation_error_handler,
)
from tools_hub.middleware import RequestLoggingMiddleware, RateLimitMiddleware, setup_logging
from tools_hub.routers import ai, audit, auth, health, tools
from tools_hub.settings import settings
from tools_hub.startup import run_startup_validation

# Configure logging before anything else
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan with startup validation.

    Validates settings and database connection before accepting traffic.
    """
    logger.info(f"Starting application in {settings.ENV} environment")

    try:
        run_startup_validation()
    except Exception as e:
        logger.error(f"Startup validation failed: {e}")
        logger.error("Application will not start")
        raise

    yield

    logger.info("Shutting down application")


app = FastAPI(
    title="CMG Tools Hub",
    description="Directory and moderation workflow for CMG internal tools",
    version="0.1.0",
    lifespan=lifespan
)

# Add middleware (order matters - last added is executed first)
# 1. Logging (outermost - logs everything)
app.add_middleware(RequestLoggingMiddleware)

# 2. Rate Limiting
app.add_middleware(RateLimitMiddleware)

app.add_exception_handler(ToolsHubError, tools_hub_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(tools.router)
app.include_router(audit.router)
app.include_router(ai.router)
