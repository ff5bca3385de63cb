"""Logging configuration for the application."""

import logging
import sys

from tally.config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure application logging.

    Sets up structured logging with appropriate levels based on environment.

    Args:
        settings: Application settings
    """
    level = logging.DEBUG if settings.debug else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,  # Override any existing configuration
    )

    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger("tally").setLevel(level)

    logger = logging.getLogger(__name__)
    logger.info(
        f"Logging configured: environment={settings.environment}, level={logging.getLevelName(level)}"
    )
    if settings.uses_dev_secret:
        logger.warning(
            "Using the development JWT secret; set AUTH__JWT_SECRET for real deployments"
        )
