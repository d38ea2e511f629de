#!/usr/bin/env python3
"""Create the commission ledger tables."""

import asyncio
import sys

from loguru import logger

from ledger.config.settings import settings
from ledger.models import Base
from ledger.services.ledger_service import LedgerService

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database() -> None:
    """Create all ledger tables that do not exist yet."""
    logger.info("Connecting to database...")

    async with LedgerService.from_settings(
        settings, record_notifications=False
    ) as ledger:
        logger.info("Creating ledger tables (checkfirst=True)...")
        await ledger.create_schema()

    logger.success(
        f"Ledger tables ready: {', '.join(sorted(Base.metadata.tables))}"
    )


if __name__ == "__main__":
    asyncio.run(init_database())
