"""Main application entry point"""

import sys

import uvicorn

from finops.config.settings import ConfigurationError, load_settings
from finops.utils.logging import setup_logging


def run_server() -> None:
    """Load settings, configure logging and serve the API with uvicorn."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    logger = setup_logging(settings.logging)
    logger.info(f"Starting operations API in {settings.environment.value} mode")
    logger.info(f"API Server: {settings.api.host}:{settings.api.port}")
    logger.info(
        f"Limits: {settings.limits.max_operations} operations, "
        f"{settings.limits.max_single_amount} per operation, "
        f"{'calendar day' if settings.limits.calendar_day_window else 'all-time'} window"
    )

    uvicorn.run(
        "finops.api.app:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
        access_log=True
    )


if __name__ == "__main__":
    run_server()
