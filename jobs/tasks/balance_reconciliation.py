"""Periodic audit of commission balances against the ledger history."""

from typing import Any

import dramatiq
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from jobs.async_runner import create_local_session, run_async
from ledger.config.operational_constants import (
    DEFAULT_MAX_RETRIES,
    DRAMATIQ_TIME_LIMIT_LONG,
)
from ledger.config.settings import settings
from ledger.services.reconciliation_service import (
    BalanceReconciliationService,
    ReconciliationReport,
)


def summarize_reports(reports: list[ReconciliationReport]) -> dict[str, Any]:
    """
    Summarize audit reports for the job result.

    Returns:
        Dict with audited/drifted counts and the drifted owners' details
    """
    drifted = [report for report in reports if not report.is_consistent]
    return {
        "audited": len(reports),
        "drifted": len(drifted),
        "drifted_owners": [report.to_dict() for report in drifted],
    }


async def audit_balances_in_session(session: AsyncSession) -> dict[str, Any]:
    """Run the audit on an existing session and summarize it."""
    service = BalanceReconciliationService(session, settings)
    reports = await service.audit_all()
    return summarize_reports(reports)


async def _audit_commission_balances_async() -> dict[str, Any]:
    async with create_local_session() as session:
        return await audit_balances_in_session(session)


@dramatiq.actor(
    max_retries=DEFAULT_MAX_RETRIES, time_limit=DRAMATIQ_TIME_LIMIT_LONG
)
def audit_commission_balances() -> dict[str, Any]:
    """
    Audit every owner's commission balance.

    Read-only: drifted owners are logged and returned, never corrected.
    """
    logger.info("Starting commission balance audit...")

    try:
        summary = run_async(_audit_commission_balances_async())
    except Exception as e:
        logger.exception(f"Commission balance audit failed: {e}")
        raise

    if summary["drifted"]:
        logger.warning(
            f"Commission balance audit found {summary['drifted']} drifted owners"
        )
    else:
        logger.info(
            f"Commission balance audit completed: {summary['audited']} owners"
        )
    return summary
