"""
Balance reconciliation service.

Recomputes each owner's balance from tracking entries and withdrawals
and compares it with the stored balance row and account totals.
Read-only: drift is reported and logged, never corrected here.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models.enums import WithdrawalStatus
from ledger.repositories.commission_balance_repository import (
    CommissionBalanceRepository,
)
from ledger.repositories.commission_withdrawal_repository import (
    CommissionWithdrawalRepository,
)
from ledger.repositories.referral_account_repository import (
    ReferralAccountRepository,
)
from ledger.repositories.referral_tracking_repository import (
    ReferralTrackingRepository,
)
from ledger.services.balance_ledger import BalanceSnapshot
from ledger.services.base_service import BaseService

if TYPE_CHECKING:
    from ledger.config.settings import Settings


@dataclass
class ReconciliationReport:
    """
    Result of auditing one owner.

    Expected values are derived from tracking entries and withdrawals;
    stored values come from the balance row and the referral account.
    """

    owner_id: str
    expected_earned: int
    expected_withdrawn: int
    expected_reserved: int
    expected_conversions: int
    stored: BalanceSnapshot
    account_total_commission: int | None = None
    account_successful_referrals: int | None = None
    discrepancies: list[str] = field(default_factory=list)

    @property
    def expected_balance(self) -> int:
        return (
            self.expected_earned
            - self.expected_withdrawn
            - self.expected_reserved
        )

    @property
    def is_consistent(self) -> bool:
        return not self.discrepancies

    def to_dict(self) -> dict[str, object]:
        return {
            "owner_id": self.owner_id,
            "expected_balance": self.expected_balance,
            "stored_balance": self.stored.balance,
            "discrepancies": list(self.discrepancies),
        }


class BalanceReconciliationService(BaseService):
    """Audits stored balances against the ledger history."""

    def __init__(self, session: AsyncSession, settings: "Settings") -> None:
        super().__init__(session)
        self.settings = settings
        self.balance_repo = CommissionBalanceRepository(session)
        self.account_repo = ReferralAccountRepository(session)
        self.tracking_repo = ReferralTrackingRepository(session)
        self.withdrawal_repo = CommissionWithdrawalRepository(session)

    async def audit_owner(self, owner_id: str) -> ReconciliationReport:
        """
        Audit one owner.

        Args:
            owner_id: Owner identity

        Returns:
            ReconciliationReport, with discrepancies listed if any
        """
        earned = await self.tracking_repo.sum_converted_commission(owner_id)
        conversions = await self.tracking_repo.count_converted(owner_id)
        totals = await self.withdrawal_repo.get_status_totals(owner_id)

        row = await self.balance_repo.get_by_owner(owner_id)
        account = await self.account_repo.get_by_owner(owner_id)

        report = ReconciliationReport(
            owner_id=owner_id,
            expected_earned=earned,
            expected_withdrawn=totals[WithdrawalStatus.CONFIRMED.value]["amount"],
            expected_reserved=totals[WithdrawalStatus.PENDING.value]["amount"],
            expected_conversions=conversions,
            stored=(
                BalanceSnapshot.from_model(row)
                if row
                else BalanceSnapshot(owner_id=owner_id)
            ),
            account_total_commission=account.total_commission if account else None,
            account_successful_referrals=(
                account.successful_referrals if account else None
            ),
        )
        self._compare(report, has_balance_row=row is not None)

        if not report.is_consistent:
            self.logger.warning(
                "Commission balance drift detected",
                extra=report.to_dict(),
            )
        return report

    def _compare(
        self, report: ReconciliationReport, has_balance_row: bool
    ) -> None:
        stored = report.stored
        checks = (
            ("balance", report.expected_balance, stored.balance),
            ("reserved", report.expected_reserved, stored.reserved),
            ("total_earned", report.expected_earned, stored.total_earned),
            (
                "total_withdrawn",
                report.expected_withdrawn,
                stored.total_withdrawn,
            ),
        )

        if not has_balance_row:
            report.discrepancies.append("balance row missing")
        for name, expected, actual in checks:
            if expected != actual:
                report.discrepancies.append(
                    f"{name}: expected {expected}, stored {actual}"
                )

        if report.account_total_commission is None:
            if report.expected_conversions:
                report.discrepancies.append("referral account missing")
            return

        if report.account_total_commission != report.expected_earned:
            report.discrepancies.append(
                f"account total_commission: expected {report.expected_earned}, "
                f"stored {report.account_total_commission}"
            )
        if report.account_successful_referrals != report.expected_conversions:
            report.discrepancies.append(
                "account successful_referrals: expected "
                f"{report.expected_conversions}, "
                f"stored {report.account_successful_referrals}"
            )

    async def audit_all(self) -> list[ReconciliationReport]:
        """
        Audit every owner holding a balance row, in batches.

        Returns:
            One report per owner
        """
        batch_size = self.settings.reconciliation_batch_size
        reports: list[ReconciliationReport] = []
        offset = 0

        while True:
            owner_ids = await self.balance_repo.get_owner_ids(
                limit=batch_size, offset=offset
            )
            if not owner_ids:
                break
            for owner_id in owner_ids:
                reports.append(await self.audit_owner(owner_id))
            offset += len(owner_ids)

        drifted = sum(1 for report in reports if not report.is_consistent)
        self.logger.info(
            "Commission balance audit finished",
            extra={"owners": len(reports), "drifted": drifted},
        )
        return reports
