"""Application startup validation."""
import logging
from sqlalchemy import inspect, text

from tools_hub.settings import settings
from tools_hub.db import engine

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ['kv_entries', 'sessions']


def validate_settings() -> None:
    """
    Validate all required settings at startup.

    Raises:
        ValueError: If required settings are missing or invalid
    """
    logger.info(f"Validating settings for ENV={settings.ENV}")
    settings.validate_required_for_env()

    if not settings.RESEND_API_KEY:
        logger.warning("RESEND_API_KEY not set: login codes are logged instead of emailed")
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set: tag suggestions fall back to keyword rules")

    logger.info("✓ Settings validation passed")


def validate_database() -> None:
    """
    Validate database connection and required tables.

    Raises:
        Exception: If database is unreachable or tables are missing
    """
    logger.info("Validating database connection...")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            existing_tables = set(inspect(conn).get_table_names())

        logger.info("✓ Database connection successful")

        missing_tables = set(REQUIRED_TABLES) - existing_tables
        if missing_tables:
            raise ValueError(
                f"Missing required database tables: {', '.join(sorted(missing_tables))}. "
                "Run migrations with: alembic upgrade head"
            )

        logger.info(f"✓ All required tables present: {', '.join(REQUIRED_TABLES)}")

    except Exception as e:
        logger.error(f"✗ Database validation failed: {e}")
        raise


def run_startup_validation() -> None:
    """
    Run all startup validations.

    Called during application startup; fails fast with a clear message if
    anything is misconfigured.
    """
    logger.info("=" * 60)
    logger.info("Starting application startup validation")
    logger.info("=" * 60)

    try:
        validate_settings()
        validate_database()

        logger.info("=" * 60)
        logger.info("✓ All startup validations passed")
        logger.info("=" * 60)

    except Exception as e:
        logger.error("=" * 60)
        logger.error("✗ Startup validation failed")
        logger.error("=" * 60)
        logger.error(f"Error: {e}")
        logger.error("Application will not start until this is resolved.")
        raise
