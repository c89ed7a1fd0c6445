"""
IT Helpdesk workflow entry point.
"""
import sys

# Initialize logging first
from src.system.logging_config import setup_logging, get_logger

# Setup logging before importing other modules
setup_logging()

import uvicorn

from src.config.settings import settings
from src.database.connection import init_database

logger = get_logger(__name__, service_name="main")


def main() -> bool:
    """Initialize the database and serve the API."""
    logger.info(f"Initializing {settings.app.app_name} v{settings.app.app_version}")

    try:
        init_database()
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        return False

    uvicorn.run(
        "src.app:app",
        host=settings.app.host,
        port=settings.app.port,
        log_level=settings.app.log_level.lower(),
        reload=settings.app.debug,
    )
    return True


if __name__ == "__main__":
    success = main()
    if not success:
        sys.exit(1)
