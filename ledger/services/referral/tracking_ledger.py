"""
Referral tracking ledger.

State machine for referred signups:

    registered -> payment_submitted -> converted | payment_rejected

Every transition is a conditional UPDATE on the current status, so a
replayed or concurrent call can never apply the same transition twice.
Conversion is the only transition that credits a balance and it does so
in the same transaction as the status write.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.config.business_constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from ledger.models.enums import TrackingStatus
from ledger.models.referral_code import ReferralCode
from ledger.models.referral_tracking import ReferralTracking
from ledger.repositories.referral_account_repository import (
    ReferralAccountRepository,
)
from ledger.repositories.referral_code_repository import ReferralCodeRepository
from ledger.repositories.referral_tracking_repository import (
    ReferralTrackingRepository,
)
from ledger.services.balance_ledger import BalanceLedger
from ledger.services.base_service import BaseService, transaction
from ledger.services.events import LedgerEventType
from ledger.services.referral.query_manager import normalize_code
from ledger.utils.exceptions import (
    InvalidCode,
    InvalidRequest,
    InvalidTransition,
    LedgerConsistencyError,
    NotFound,
)
from ledger.validators.payout import validate_positive_amount


class TrackingLedger(BaseService):
    """Records referred signups and drives them through their lifecycle."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.tracking_repo = ReferralTrackingRepository(session)
        self.code_repo = ReferralCodeRepository(session)
        self.account_repo = ReferralAccountRepository(session)
        self.balance_ledger = BalanceLedger(session)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @transaction
    async def record_registration(
        self, referrer_id: str, referred_user_id: str, code: str
    ) -> ReferralTracking:
        """
        Record that referred_user_id signed up with referrer_id's code.

        Args:
            referrer_id: Code owner
            referred_user_id: Newly registered user
            code: Code used at signup

        Returns:
            The tracking entry (existing one on replay)

        Raises:
            InvalidCode: Code does not resolve to referrer_id, or self-referral
            InvalidRequest: User is already referred by someone else
        """
        record = await self._resolve(code)
        if record.owner_id != referrer_id:
            raise InvalidCode(
                "Referral code belongs to another owner",
                code=record.code,
                referrer_id=referrer_id,
            )
        return await self._register(record, referred_user_id)

    @transaction
    async def register_signup(
        self, referred_user_id: str, code: str
    ) -> ReferralTracking:
        """
        Record a signup under whoever owns the code.

        Raises:
            InvalidCode: Code does not resolve, or self-referral
            InvalidRequest: User is already referred by someone else
        """
        record = await self._resolve(code)
        return await self._register(record, referred_user_id)

    async def _resolve(self, code: str) -> ReferralCode:
        normalized = normalize_code(code)
        record = (
            await self.code_repo.get_active_by_code(normalized)
            if normalized
            else None
        )
        if not record:
            raise InvalidCode("Referral code not found", code=normalized)

        if not await self.account_repo.exists(owner_id=record.owner_id):
            raise InvalidCode(
                "Referral code is not ready yet",
                code=normalized,
                owner_id=record.owner_id,
            )
        return record

    async def _register(
        self, record: ReferralCode, referred_user_id: str
    ) -> ReferralTracking:
        # Plain values survive the rollback below; ORM state does not
        referrer_id = record.owner_id
        code = record.code

        if referred_user_id == referrer_id:
            raise InvalidCode("Cannot use your own referral code", code=code)

        existing = await self.tracking_repo.get_by_referred_user(
            referred_user_id
        )
        if existing:
            return self._replayed_registration(existing, referrer_id)

        try:
            entry = await self.tracking_repo.create(
                referrer_id=referrer_id,
                referred_user_id=referred_user_id,
                referral_code=code,
            )
        except IntegrityError:
            # Concurrent registration of the same user won
            await self.rollback()
            existing = await self.tracking_repo.get_by_referred_user(
                referred_user_id
            )
            if not existing:
                raise
            return self._replayed_registration(existing, referrer_id)

        updated = await self.account_repo.increment_referrals(referrer_id)
        if not updated:
            raise NotFound(
                "Referral account not found", owner_id=referrer_id
            )

        self.emit(
            LedgerEventType.REFERRAL_REGISTERED,
            referrer_id,
            reference_id=entry.id,
            referred_user_id=referred_user_id,
            code=code,
        )
        self.logger.info(
            "Referral registered",
            extra={
                "entry_id": entry.id,
                "referrer_id": referrer_id,
                "referred_user_id": referred_user_id,
                "code": code,
            },
        )
        return entry

    def _replayed_registration(
        self, existing: ReferralTracking, referrer_id: str
    ) -> ReferralTracking:
        if existing.referrer_id != referrer_id:
            raise InvalidRequest(
                "User is already referred by another owner",
                referred_user_id=existing.referred_user_id,
            )
        return existing

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @transaction
    async def mark_payment_submitted(self, entry_id: int) -> ReferralTracking:
        """
        registered -> payment_submitted.

        No-op when the entry is already past registered.

        Raises:
            NotFound: Unknown entry
        """
        moved = await self.tracking_repo.mark_payment_submitted(entry_id)
        entry = await self._reload(entry_id)

        if moved:
            self.emit(
                LedgerEventType.PAYMENT_SUBMITTED,
                entry.referrer_id,
                reference_id=entry.id,
                referred_user_id=entry.referred_user_id,
            )
            self.logger.info(
                "Referral payment submitted",
                extra={"entry_id": entry_id, "referrer_id": entry.referrer_id},
            )
        return entry

    @transaction
    async def approve_conversion(
        self, entry_id: int, commission_amount: int
    ) -> ReferralTracking:
        """
        payment_submitted -> converted, crediting the commission.

        Counting the conversion, adding the commission to the account and
        crediting the balance happen in the same transaction as the status
        write. Replaying on a converted entry is a no-op.

        Args:
            entry_id: Tracking entry ID
            commission_amount: Commission to grant

        Returns:
            The tracking entry

        Raises:
            InvalidRequest: Commission is not a positive integer
            NotFound: Unknown entry, or owner without account/balance
            InvalidTransition: Entry is registered or payment_rejected
        """
        is_valid, amount, error = validate_positive_amount(commission_amount)
        if not is_valid:
            raise InvalidRequest(error, amount=commission_amount)

        moved = await self.tracking_repo.mark_converted(entry_id, amount)
        entry = await self._reload(entry_id)

        if not moved:
            if entry.status == TrackingStatus.CONVERTED:
                return entry
            raise InvalidTransition(
                "Only entries with a submitted payment can be converted",
                current_status=entry.status,
                requested=TrackingStatus.CONVERTED.value,
                entry_id=entry_id,
            )

        await self._record_conversion(entry.referrer_id, amount)
        await self.balance_ledger.credit(entry.referrer_id, amount)

        self.emit(
            LedgerEventType.COMMISSION_EARNED,
            entry.referrer_id,
            amount=amount,
            reference_id=entry.id,
            referred_user_id=entry.referred_user_id,
        )
        self.logger.info(
            "Referral converted",
            extra={
                "entry_id": entry_id,
                "referrer_id": entry.referrer_id,
                "commission": amount,
            },
        )
        return entry

    async def _record_conversion(self, owner_id: str, amount: int) -> None:
        if await self.account_repo.record_conversion(owner_id, amount):
            return
        if not await self.account_repo.exists(owner_id=owner_id):
            raise NotFound("Referral account not found", owner_id=owner_id)
        raise LedgerConsistencyError(
            "More conversions than referrals on account",
            owner_id=owner_id,
        )

    @transaction
    async def reject_conversion(self, entry_id: int) -> ReferralTracking:
        """
        payment_submitted -> payment_rejected. No balance effect.

        Replaying on a rejected entry is a no-op.

        Raises:
            NotFound: Unknown entry
            InvalidTransition: Entry is registered or converted
        """
        moved = await self.tracking_repo.mark_rejected(entry_id)
        entry = await self._reload(entry_id)

        if not moved:
            if entry.status == TrackingStatus.PAYMENT_REJECTED:
                return entry
            raise InvalidTransition(
                "Only entries with a submitted payment can be rejected",
                current_status=entry.status,
                requested=TrackingStatus.PAYMENT_REJECTED.value,
                entry_id=entry_id,
            )

        self.emit(
            LedgerEventType.CONVERSION_REJECTED,
            entry.referrer_id,
            reference_id=entry.id,
            referred_user_id=entry.referred_user_id,
        )
        self.logger.info(
            "Referral payment rejected",
            extra={"entry_id": entry_id, "referrer_id": entry.referrer_id},
        )
        return entry

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _reload(self, entry_id: int) -> ReferralTracking:
        entry = await self.tracking_repo.get_by_id(entry_id)
        if not entry:
            raise NotFound("Tracking entry not found", entry_id=entry_id)
        return entry

    async def get_entry(self, entry_id: int) -> ReferralTracking:
        """Get a tracking entry or raise NotFound."""
        return await self._reload(entry_id)

    async def find_entry_by_referred_user(
        self, referred_user_id: str
    ) -> ReferralTracking | None:
        return await self.tracking_repo.get_by_referred_user(referred_user_id)

    async def list_entries(
        self,
        owner_id: str,
        status: TrackingStatus | str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[ReferralTracking]:
        """Owner's tracking entries, newest first."""
        if status is not None:
            try:
                status = TrackingStatus(status)
            except ValueError:
                raise InvalidRequest(
                    "Unknown tracking status", status=str(status)
                ) from None

        return await self.tracking_repo.get_by_referrer(
            owner_id,
            status=status,
            limit=min(limit, MAX_LIST_LIMIT),
        )
