"""
Integration tests for the referral tracking ledger.

Tests cover:
- Registration rules (code ownership, self-referral, replays)
- registered -> payment_submitted -> converted | payment_rejected
- Exactly-once commission credit
- Rollback of a conversion when the balance row is missing
"""

import pytest
import pytest_asyncio

from ledger.models import CommissionBalance, ReferralTracking
from ledger.models.enums import TrackingStatus
from ledger.services.actor import Actor
from ledger.services.events import LedgerEventType
from ledger.utils.exceptions import (
    InvalidCode,
    InvalidRequest,
    InvalidTransition,
    NotFound,
)


CODE = "SULTANAH-AHM4821"


@pytest_asyncio.fixture
async def issued(make_ledger, sequence_rng, ahmad):
    """Ledger where Ahmad (alumni) holds SULTANAH-AHM4821."""
    ledger = make_ledger(rng=sequence_rng([4821, 1111]))
    await ledger.on_role_granted(ahmad, ahmad.user_id, "alumni", "Ahmad Fauzi")
    return ledger


async def _submitted(ledger, ahmad, referred_user_id="jamaah-1"):
    entry = await ledger.record_registration(ahmad.user_id, referred_user_id, CODE)
    return await ledger.on_payment_submitted(entry.id)


class TestRegistration:
    """Test recording referred signups."""

    @pytest.mark.asyncio
    async def test_registration_creates_entry(self, issued, ahmad, published):
        entry = await issued.record_registration(ahmad.user_id, "jamaah-1", CODE)

        assert entry.status == TrackingStatus.REGISTERED
        assert entry.referrer_id == ahmad.user_id
        assert entry.referral_code == CODE
        assert entry.commission_amount == 0

        account = await issued.get_account(ahmad.user_id)
        assert account.total_referrals == 1
        assert [event.type for event in published][-1] == (
            LedgerEventType.REFERRAL_REGISTERED
        )

    @pytest.mark.asyncio
    async def test_signup_hook_resolves_code(self, issued, ahmad):
        entry = await issued.on_signup_with_referral("jamaah-1", " sultanah-ahm4821")

        assert entry.referrer_id == ahmad.user_id

    @pytest.mark.asyncio
    async def test_code_of_another_owner(self, issued):
        with pytest.raises(InvalidCode):
            await issued.record_registration("someone-else", "jamaah-1", CODE)

    @pytest.mark.asyncio
    async def test_unknown_code(self, issued, ahmad):
        with pytest.raises(InvalidCode):
            await issued.record_registration(
                ahmad.user_id, "jamaah-1", "SULTANAH-XXX0000"
            )
        with pytest.raises(InvalidCode):
            await issued.on_signup_with_referral("jamaah-1", "")

    @pytest.mark.asyncio
    async def test_self_referral(self, issued, ahmad, count_rows):
        with pytest.raises(InvalidCode):
            await issued.on_signup_with_referral(ahmad.user_id, CODE)

        assert await count_rows(ReferralTracking) == 0

    @pytest.mark.asyncio
    async def test_inactive_code(self, issued, admin, ahmad):
        await issued.deactivate_code(admin, CODE)

        with pytest.raises(InvalidCode):
            await issued.record_registration(ahmad.user_id, "jamaah-1", CODE)

    @pytest.mark.asyncio
    async def test_replay_returns_existing_entry(self, issued, ahmad, published):
        first = await issued.record_registration(ahmad.user_id, "jamaah-1", CODE)
        events_before = len(published)

        second = await issued.record_registration(ahmad.user_id, "jamaah-1", CODE)

        assert second.id == first.id
        assert (await issued.get_account(ahmad.user_id)).total_referrals == 1
        assert len(published) == events_before

    @pytest.mark.asyncio
    async def test_user_referred_by_someone_else(self, issued, ahmad):
        other = Actor(user_id="owner-2")
        other_code = await issued.on_role_granted(
            other, "owner-2", "agent", "Siti"
        )
        await issued.record_registration(ahmad.user_id, "jamaah-1", CODE)

        with pytest.raises(InvalidRequest):
            await issued.record_registration(
                "owner-2", "jamaah-1", other_code.code
            )

        assert (await issued.get_account("owner-2")).total_referrals == 0


class TestPaymentSubmitted:
    """Test registered -> payment_submitted."""

    @pytest.mark.asyncio
    async def test_transition(self, issued, ahmad):
        entry = await _submitted(issued, ahmad)

        assert entry.status == TrackingStatus.PAYMENT_SUBMITTED
        assert entry.payment_submitted_at is not None

    @pytest.mark.asyncio
    async def test_replay_is_noop(self, issued, ahmad):
        entry = await _submitted(issued, ahmad)

        again = await issued.on_payment_submitted(entry.id)

        assert again.status == TrackingStatus.PAYMENT_SUBMITTED

    @pytest.mark.asyncio
    async def test_noop_after_conversion(self, issued, ahmad):
        entry = await _submitted(issued, ahmad)
        await issued.on_payment_approved(entry.id, 200_000)

        again = await issued.on_payment_submitted(entry.id)

        assert again.status == TrackingStatus.CONVERTED

    @pytest.mark.asyncio
    async def test_unknown_entry(self, issued):
        with pytest.raises(NotFound):
            await issued.on_payment_submitted(999)


class TestApproveConversion:
    """Test payment_submitted -> converted."""

    @pytest.mark.asyncio
    async def test_credits_commission(self, issued, ahmad, published):
        entry = await _submitted(issued, ahmad)

        converted = await issued.on_payment_approved(entry.id, 200_000)

        assert converted.status == TrackingStatus.CONVERTED
        assert converted.commission_amount == 200_000
        assert converted.converted_at is not None

        account = await issued.get_account(ahmad.user_id)
        assert account.successful_referrals == 1
        assert account.total_commission == 200_000

        balance = await issued.get_balance(ahmad.user_id)
        assert balance.balance == 200_000
        assert balance.total_earned == 200_000

        earned = [
            event
            for event in published
            if event.type == LedgerEventType.COMMISSION_EARNED
        ]
        assert len(earned) == 1
        assert earned[0].amount == 200_000
        assert earned[0].reference_id == entry.id

    @pytest.mark.asyncio
    async def test_replay_credits_once(self, issued, ahmad, published):
        entry = await _submitted(issued, ahmad)
        await issued.on_payment_approved(entry.id, 200_000)

        again = await issued.on_payment_approved(entry.id, 200_000)

        assert again.commission_amount == 200_000
        balance = await issued.get_balance(ahmad.user_id)
        assert balance.balance == 200_000
        account = await issued.get_account(ahmad.user_id)
        assert account.successful_referrals == 1
        assert sum(
            1 for event in published
            if event.type == LedgerEventType.COMMISSION_EARNED
        ) == 1

    @pytest.mark.asyncio
    async def test_from_registered(self, issued, ahmad):
        entry = await issued.record_registration(ahmad.user_id, "jamaah-1", CODE)

        with pytest.raises(InvalidTransition) as exc_info:
            await issued.on_payment_approved(entry.id, 200_000)

        assert exc_info.value.current_status == "registered"
        assert (await issued.get_balance(ahmad.user_id)).balance == 0

    @pytest.mark.asyncio
    async def test_from_rejected(self, issued, ahmad):
        entry = await _submitted(issued, ahmad)
        await issued.on_payment_rejected(entry.id)

        with pytest.raises(InvalidTransition):
            await issued.on_payment_approved(entry.id, 200_000)

    @pytest.mark.parametrize("amount", [0, -200_000, 199_999.5])
    @pytest.mark.asyncio
    async def test_invalid_amount(self, issued, ahmad, amount):
        entry = await _submitted(issued, ahmad)

        with pytest.raises(InvalidRequest):
            await issued.on_payment_approved(entry.id, amount)

        current = await issued.get_tracking_entry(entry.id)
        assert current.status == TrackingStatus.PAYMENT_SUBMITTED

    @pytest.mark.asyncio
    async def test_unknown_entry(self, issued):
        with pytest.raises(NotFound):
            await issued.on_payment_approved(999, 200_000)

    @pytest.mark.asyncio
    async def test_missing_balance_rolls_back(
        self, issued, ahmad, force_delete
    ):
        """Status write, account totals and credit succeed or fail together."""
        entry = await _submitted(issued, ahmad)
        await force_delete(
            CommissionBalance, [CommissionBalance.owner_id == ahmad.user_id]
        )

        with pytest.raises(NotFound):
            await issued.on_payment_approved(entry.id, 200_000)

        current = await issued.get_tracking_entry(entry.id)
        assert current.status == TrackingStatus.PAYMENT_SUBMITTED
        assert current.commission_amount == 0
        account = await issued.get_account(ahmad.user_id)
        assert account.successful_referrals == 0
        assert account.total_commission == 0


class TestRejectConversion:
    """Test payment_submitted -> payment_rejected."""

    @pytest.mark.asyncio
    async def test_rejects_without_balance_effect(self, issued, ahmad):
        entry = await _submitted(issued, ahmad)

        rejected = await issued.on_payment_rejected(entry.id)

        assert rejected.status == TrackingStatus.PAYMENT_REJECTED
        assert rejected.rejected_at is not None
        assert (await issued.get_balance(ahmad.user_id)).total_earned == 0

    @pytest.mark.asyncio
    async def test_replay_is_noop(self, issued, ahmad):
        entry = await _submitted(issued, ahmad)
        await issued.on_payment_rejected(entry.id)

        again = await issued.on_payment_rejected(entry.id)

        assert again.status == TrackingStatus.PAYMENT_REJECTED

    @pytest.mark.asyncio
    async def test_from_registered(self, issued, ahmad):
        entry = await issued.record_registration(ahmad.user_id, "jamaah-1", CODE)

        with pytest.raises(InvalidTransition):
            await issued.on_payment_rejected(entry.id)

    @pytest.mark.asyncio
    async def test_converted_entry_keeps_credit(self, issued, ahmad):
        """A converted entry can never be rejected."""
        entry = await _submitted(issued, ahmad)
        await issued.on_payment_approved(entry.id, 200_000)

        with pytest.raises(InvalidTransition) as exc_info:
            await issued.on_payment_rejected(entry.id)

        assert exc_info.value.current_status == "converted"
        current = await issued.get_tracking_entry(entry.id)
        assert current.status == TrackingStatus.CONVERTED
        assert (await issued.get_balance(ahmad.user_id)).balance == 200_000


class TestTrackingReads:
    """Test tracking entry listings."""

    @pytest.mark.asyncio
    async def test_list_newest_first_with_filter(self, issued, ahmad):
        first = await issued.record_registration(ahmad.user_id, "jamaah-1", CODE)
        second = await issued.record_registration(ahmad.user_id, "jamaah-2", CODE)
        await issued.on_payment_submitted(second.id)

        entries = await issued.list_tracking_entries(ahmad.user_id)
        submitted = await issued.list_tracking_entries(
            ahmad.user_id, status="payment_submitted"
        )

        assert [entry.id for entry in entries] == [second.id, first.id]
        assert [entry.id for entry in submitted] == [second.id]

    @pytest.mark.asyncio
    async def test_unknown_status_filter(self, issued, ahmad):
        with pytest.raises(InvalidRequest):
            await issued.list_tracking_entries(ahmad.user_id, status="paid")

    @pytest.mark.asyncio
    async def test_find_by_referred_user(self, issued, ahmad):
        entry = await issued.record_registration(ahmad.user_id, "jamaah-1", CODE)

        found = await issued.find_entry_by_referred_user("jamaah-1")

        assert found.id == entry.id
        assert await issued.find_entry_by_referred_user("nobody") is None

    @pytest.mark.asyncio
    async def test_account_commission_matches_entries(self, issued, ahmad):
        for index, amount in enumerate([200_000, 150_000, 300_000]):
            entry = await _submitted(issued, ahmad, f"jamaah-{index}")
            await issued.on_payment_approved(entry.id, amount)
        rejected = await _submitted(issued, ahmad, "jamaah-rejected")
        await issued.on_payment_rejected(rejected.id)

        entries = await issued.list_tracking_entries(
            ahmad.user_id, status=TrackingStatus.CONVERTED
        )
        account = await issued.get_account(ahmad.user_id)

        assert account.total_commission == sum(
            entry.commission_amount for entry in entries
        )
        assert account.successful_referrals == 3
        assert account.total_referrals == 4
        assert account.conversion_rate_percent == 75.0
