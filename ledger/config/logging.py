"""
Logging configuration.

Configures loguru sinks for the ledger.
Sets up log rotation and retention policies.
"""

import sys
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from ledger.config.settings import Settings


def setup_logging(settings: "Settings") -> None:
    """Configure stderr and rotating file sinks."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level,
            encoding="utf-8",
        )

    logger.info(
        f"Commission ledger logging configured "
        f"(level={settings.log_level}, environment={settings.environment})"
    )
