#!/usr/bin/env python3
"""Audit commission balances once and print drifted owners."""

import asyncio
import sys

from loguru import logger

from ledger.config.logging import setup_logging
from ledger.config.settings import settings
from ledger.services.ledger_service import LedgerService


async def audit() -> int:
    """Run the audit; exit status 1 when any owner drifted."""
    async with LedgerService.from_settings(
        settings, record_notifications=False
    ) as ledger:
        reports = await ledger.audit_balances()

    drifted = [report for report in reports if not report.is_consistent]
    for report in drifted:
        logger.warning(
            f"Owner {report.owner_id}: {'; '.join(report.discrepancies)}"
        )

    logger.info(f"Audited {len(reports)} owners, {len(drifted)} drifted")
    return 1 if drifted else 0


if __name__ == "__main__":
    setup_logging(settings)
    sys.exit(asyncio.run(audit()))
