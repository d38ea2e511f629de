"""
Ledger service - public entry point of the commission ledger.

Holds the injected storage dependencies and runs every operation as one
unit of work: a fresh session, one transaction, and publication of the
collected events only after the transaction committed.

Usage:
    async with LedgerService.from_settings(settings) as ledger:
        code = await ledger.on_role_granted(actor, "u-1", "alumni", "Ahmad")
"""

import random
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ledger.config.business_constants import DEFAULT_LIST_LIMIT
from ledger.config.database import create_engine_from_settings, create_session_maker
from ledger.models import Base
from ledger.models.commission_withdrawal import CommissionWithdrawal
from ledger.models.enums import OwnerRole, TrackingStatus, WithdrawalStatus
from ledger.models.owner_notification import OwnerNotification
from ledger.models.referral_account import ReferralAccount
from ledger.models.referral_code import ReferralCode
from ledger.models.referral_tracking import ReferralTracking
from ledger.services.actor import Actor
from ledger.services.balance_ledger import BalanceLedger, BalanceSnapshot
from ledger.services.base_service import BaseService
from ledger.services.events import EventBus
from ledger.services.notification_service import (
    NotificationRecorder,
    NotificationService,
)
from ledger.services.reconciliation_service import (
    BalanceReconciliationService,
    ReconciliationReport,
)
from ledger.services.referral.code_generator import CodeGenerator
from ledger.services.referral.config import commission_rate_for
from ledger.services.referral.query_manager import ReferralQueryManager
from ledger.services.referral.tracking_ledger import TrackingLedger
from ledger.services.withdrawal_service import WithdrawalService
from ledger.validators.payout import PayoutDetails

if TYPE_CHECKING:
    from ledger.config.settings import Settings


T = TypeVar("T")
S = TypeVar("S", bound=BaseService)


class LedgerService:
    """
    Referral code and commission ledger.

    Args:
        settings: Ledger settings
        session_maker: Async session factory
        engine: Engine owned by this service, disposed on close()
        event_bus: Bus receiving committed ledger events
        rng: Random source for referral code suffixes
        clock: Millisecond clock for the fallback code suffix
        record_notifications: Subscribe the owner notification recorder
    """

    def __init__(
        self,
        settings: "Settings",
        session_maker: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
        event_bus: EventBus | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], int] | None = None,
        record_notifications: bool = True,
    ) -> None:
        self.settings = settings
        self.session_maker = session_maker
        self.engine = engine
        self.event_bus = event_bus or EventBus()
        self.rng = rng
        self.clock = clock
        self._unsubscribe: Callable[[], None] | None = None

        if record_notifications:
            self._unsubscribe = self.event_bus.subscribe(
                NotificationRecorder(session_maker)
            )

    @classmethod
    def from_settings(cls, settings: "Settings", **kwargs: Any) -> "LedgerService":
        """Build the engine and session factory from settings."""
        engine = create_engine_from_settings(settings)
        return cls(
            settings,
            create_session_maker(engine),
            engine=engine,
            **kwargs,
        )

    async def create_schema(self) -> None:
        """Create all ledger tables (development and tests)."""
        if self.engine is None:
            raise RuntimeError("LedgerService has no engine to create tables on")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Unsubscribe own subscribers and dispose the owned engine."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Commission ledger closed")

    async def __aenter__(self) -> "LedgerService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ========================================================================
    # UNIT OF WORK
    # ========================================================================

    async def _run(
        self,
        factory: Callable[[AsyncSession], S],
        operation: Callable[[S], Awaitable[T]],
    ) -> T:
        """Run one operation in its own session, then publish its events."""
        async with self.session_maker() as session:
            service = factory(session)
            result = await operation(service)
            events = list(service.events)

        await self.event_bus.publish_all(events)
        return result

    def _code_generator(self, session: AsyncSession) -> CodeGenerator:
        options: dict[str, Any] = {"rng": self.rng}
        if self.clock is not None:
            options["clock"] = self.clock
        return CodeGenerator(session, self.settings, **options)

    def _withdrawals(self, session: AsyncSession) -> WithdrawalService:
        return WithdrawalService(session, self.settings)

    def _reconciliation(
        self, session: AsyncSession
    ) -> BalanceReconciliationService:
        return BalanceReconciliationService(session, self.settings)

    # ========================================================================
    # INBOUND HOOKS
    # ========================================================================

    async def on_role_granted(
        self,
        actor: Actor,
        owner_id: str,
        role: str | OwnerRole,
        display_name: str | None,
    ) -> ReferralCode:
        """Owner became alumni or agent: issue (or return) their code."""
        return await self._run(
            self._code_generator,
            lambda s: s.issue_code(actor, owner_id, role, display_name),
        )

    issue_code = on_role_granted

    async def on_signup_with_referral(
        self, new_user_id: str, code: str
    ) -> ReferralTracking:
        """New user registered with a referral code."""
        return await self._run(
            TrackingLedger, lambda s: s.register_signup(new_user_id, code)
        )

    async def record_registration(
        self, referrer_id: str, referred_user_id: str, code: str
    ) -> ReferralTracking:
        return await self._run(
            TrackingLedger,
            lambda s: s.record_registration(referrer_id, referred_user_id, code),
        )

    async def on_payment_submitted(self, entry_id: int) -> ReferralTracking:
        return await self._run(
            TrackingLedger, lambda s: s.mark_payment_submitted(entry_id)
        )

    async def on_payment_approved(
        self, entry_id: int, commission_amount: int
    ) -> ReferralTracking:
        return await self._run(
            TrackingLedger,
            lambda s: s.approve_conversion(entry_id, commission_amount),
        )

    async def on_payment_rejected(self, entry_id: int) -> ReferralTracking:
        return await self._run(
            TrackingLedger, lambda s: s.reject_conversion(entry_id)
        )

    def commission_rate_for(self, role: str | OwnerRole) -> int:
        """Configured commission per conversion for a role."""
        return commission_rate_for(self.settings, role)

    # ========================================================================
    # REFERRAL READS
    # ========================================================================

    async def lookup_owner_by_code(self, code: str) -> str:
        return await self._run(
            ReferralQueryManager, lambda s: s.lookup_owner_by_code(code)
        )

    async def get_account(self, owner_id: str) -> ReferralAccount:
        return await self._run(
            ReferralQueryManager, lambda s: s.get_account(owner_id)
        )

    async def get_active_code(self, owner_id: str) -> ReferralCode:
        return await self._run(
            ReferralQueryManager, lambda s: s.get_active_code(owner_id)
        )

    async def list_accounts(
        self,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
        code_query: str | None = None,
    ) -> list[ReferralAccount]:
        return await self._run(
            ReferralQueryManager,
            lambda s: s.list_accounts(limit, offset, code_query),
        )

    async def deactivate_code(self, actor: Actor, code: str) -> ReferralCode:
        return await self._run(
            ReferralQueryManager, lambda s: s.deactivate_code(actor, code)
        )

    async def get_tracking_entry(self, entry_id: int) -> ReferralTracking:
        return await self._run(TrackingLedger, lambda s: s.get_entry(entry_id))

    async def find_entry_by_referred_user(
        self, referred_user_id: str
    ) -> ReferralTracking | None:
        return await self._run(
            TrackingLedger,
            lambda s: s.find_entry_by_referred_user(referred_user_id),
        )

    async def list_tracking_entries(
        self,
        owner_id: str,
        status: TrackingStatus | str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[ReferralTracking]:
        return await self._run(
            TrackingLedger, lambda s: s.list_entries(owner_id, status, limit)
        )

    # ========================================================================
    # BALANCE
    # ========================================================================

    async def get_balance(self, owner_id: str) -> BalanceSnapshot:
        """Owner's balance; zeros for unknown owners."""
        return await self._run(BalanceLedger, lambda s: s.get_balance(owner_id))

    # ========================================================================
    # WITHDRAWALS
    # ========================================================================

    async def request_withdrawal(
        self,
        actor: Actor,
        owner_id: str,
        amount: int,
        payout: PayoutDetails,
    ) -> CommissionWithdrawal:
        return await self._run(
            self._withdrawals,
            lambda s: s.request_withdrawal(actor, owner_id, amount, payout),
        )

    async def confirm_withdrawal(
        self,
        actor: Actor,
        request_id: int,
        note: str | None = None,
        transfer_proof_ref: str | None = None,
    ) -> CommissionWithdrawal:
        return await self._run(
            self._withdrawals,
            lambda s: s.confirm_withdrawal(
                actor, request_id, note, transfer_proof_ref
            ),
        )

    async def reject_withdrawal(
        self, actor: Actor, request_id: int, note: str | None = None
    ) -> CommissionWithdrawal:
        return await self._run(
            self._withdrawals,
            lambda s: s.reject_withdrawal(actor, request_id, note),
        )

    async def get_withdrawal(self, request_id: int) -> CommissionWithdrawal:
        return await self._run(
            self._withdrawals, lambda s: s.get_withdrawal(request_id)
        )

    async def list_withdrawals(
        self,
        owner_id: str,
        status: WithdrawalStatus | str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[CommissionWithdrawal]:
        return await self._run(
            self._withdrawals,
            lambda s: s.list_withdrawals(owner_id, status, limit),
        )

    async def list_pending_withdrawals(
        self, limit: int = DEFAULT_LIST_LIMIT
    ) -> list[CommissionWithdrawal]:
        return await self._run(
            self._withdrawals, lambda s: s.list_pending_withdrawals(limit)
        )

    async def list_all_withdrawals(
        self,
        status: WithdrawalStatus | str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[CommissionWithdrawal]:
        """Withdrawals across all owners and statuses, newest first."""
        return await self._run(
            self._withdrawals, lambda s: s.list_all_withdrawals(status, limit)
        )

    async def get_withdrawal_summary(self, owner_id: str) -> dict[str, Any]:
        return await self._run(
            self._withdrawals, lambda s: s.get_withdrawal_summary(owner_id)
        )

    # ========================================================================
    # NOTIFICATIONS
    # ========================================================================

    async def list_notifications(
        self,
        owner_id: str,
        unread_only: bool = False,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[OwnerNotification]:
        return await self._run(
            NotificationService,
            lambda s: s.list_notifications(owner_id, unread_only, limit),
        )

    async def mark_notification_read(
        self, owner_id: str, notification_id: int
    ) -> None:
        await self._run(
            NotificationService,
            lambda s: s.mark_read(owner_id, notification_id),
        )

    async def count_unread(self, owner_id: str) -> int:
        return await self._run(
            NotificationService, lambda s: s.count_unread(owner_id)
        )

    # ========================================================================
    # RECONCILIATION
    # ========================================================================

    async def audit_owner(self, owner_id: str) -> ReconciliationReport:
        return await self._run(
            self._reconciliation, lambda s: s.audit_owner(owner_id)
        )

    async def audit_balances(self) -> list[ReconciliationReport]:
        return await self._run(self._reconciliation, lambda s: s.audit_all())
