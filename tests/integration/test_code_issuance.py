"""
Integration tests for referral code issuance.

Tests cover:
- Code format and initial account/balance rows
- Idempotent issuance per owner
- Collisions, timestamp fallback and exhaustion
- Lost races decided by unique constraints
- Deactivation and re-issuance
- Admin listing and code search over accounts
"""

import pytest
import pytest_asyncio

from ledger.models import CommissionBalance, ReferralAccount, ReferralCode
from ledger.repositories.referral_code_repository import ReferralCodeRepository
from ledger.services.actor import Actor
from ledger.services.events import LedgerEventType
from ledger.utils.exceptions import (
    CodeSpaceExhausted,
    InvalidRequest,
    NotFound,
    PermissionDenied,
)


class TestIssueCode:
    """Test first issuance."""

    @pytest.mark.asyncio
    async def test_issues_code_with_account_and_balance(
        self, make_ledger, sequence_rng, ahmad
    ):
        """Code, zeroed account and zeroed balance are created together."""
        ledger = make_ledger(rng=sequence_rng([4821]))

        code = await ledger.on_role_granted(
            ahmad, ahmad.user_id, "alumni", "Ahmad Fauzi"
        )

        assert code.code == "SULTANAH-AHM4821"
        assert code.owner_id == ahmad.user_id
        assert code.owner_role == "alumni"
        assert code.is_active is True
        assert code.commission_per_conversion == 200_000

        account = await ledger.get_account(ahmad.user_id)
        assert account.code == "SULTANAH-AHM4821"
        assert account.total_referrals == 0
        assert account.successful_referrals == 0
        assert account.total_commission == 0

        balance = await ledger.get_balance(ahmad.user_id)
        assert (balance.balance, balance.reserved) == (0, 0)
        assert (balance.total_earned, balance.total_withdrawn) == (0, 0)

    @pytest.mark.asyncio
    async def test_agent_rate(self, make_ledger, sequence_rng):
        ledger = make_ledger(rng=sequence_rng([1000]))
        agent = Actor(user_id="agent-1")

        code = await ledger.on_role_granted(agent, "agent-1", "agent", "Budi")

        assert code.code == "SULTANAH-BUD1000"
        assert code.commission_per_conversion == 500_000
        assert ledger.commission_rate_for("agent") == 500_000

    @pytest.mark.asyncio
    async def test_lookup_resolves_normalized_code(
        self, make_ledger, sequence_rng, ahmad
    ):
        ledger = make_ledger(rng=sequence_rng([4821]))
        await ledger.on_role_granted(ahmad, ahmad.user_id, "alumni", "Ahmad")

        owner = await ledger.lookup_owner_by_code("  sultanah-ahm4821 ")

        assert owner == ahmad.user_id

    @pytest.mark.asyncio
    async def test_issue_event_published(
        self, make_ledger, sequence_rng, ahmad, published
    ):
        ledger = make_ledger(rng=sequence_rng([4821]))

        await ledger.on_role_granted(ahmad, ahmad.user_id, "alumni", "Ahmad")
        await ledger.on_role_granted(ahmad, ahmad.user_id, "alumni", "Ahmad")

        issued = [
            event
            for event in published
            if event.type == LedgerEventType.REFERRAL_CODE_ISSUED
        ]
        assert len(issued) == 1
        assert issued[0].payload["code"] == "SULTANAH-AHM4821"


class TestIssueCodePreconditions:
    """Test permission and role checks."""

    @pytest.mark.asyncio
    async def test_other_user_denied(self, ledger, ahmad, count_rows):
        intruder = Actor(user_id="someone-else")

        with pytest.raises(PermissionDenied):
            await ledger.on_role_granted(
                intruder, ahmad.user_id, "alumni", "Ahmad"
            )

        assert await count_rows(ReferralCode) == 0

    @pytest.mark.asyncio
    async def test_admin_may_issue_for_owner(self, ledger, admin, ahmad):
        code = await ledger.on_role_granted(
            admin, ahmad.user_id, "agent", "Ahmad"
        )

        assert code.owner_id == ahmad.user_id

    @pytest.mark.asyncio
    async def test_non_qualifying_role(self, ledger, ahmad, count_rows):
        with pytest.raises(InvalidRequest):
            await ledger.on_role_granted(
                ahmad, ahmad.user_id, "jamaah", "Ahmad"
            )

        assert await count_rows(ReferralAccount) == 0
        assert await count_rows(CommissionBalance) == 0


class TestIdempotentIssuance:
    """Test that an owner never gets a second active code."""

    @pytest.mark.asyncio
    async def test_second_call_returns_same_code(
        self, make_ledger, sequence_rng, ahmad, count_rows
    ):
        ledger = make_ledger(rng=sequence_rng([4821, 9999]))

        first = await ledger.on_role_granted(
            ahmad, ahmad.user_id, "alumni", "Ahmad"
        )
        # Role upgrade to agent keeps the existing code
        second = await ledger.on_role_granted(
            ahmad, ahmad.user_id, "agent", "Someone Else"
        )

        assert second.id == first.id
        assert second.code == first.code
        assert second.owner_role == "alumni"
        assert await count_rows(ReferralCode, owner_id=ahmad.user_id) == 1
        assert await count_rows(ReferralAccount, owner_id=ahmad.user_id) == 1
        assert await count_rows(CommissionBalance, owner_id=ahmad.user_id) == 1

    @pytest.mark.asyncio
    async def test_missing_rows_are_repaired(
        self, make_ledger, sequence_rng, ahmad, force_delete, count_rows
    ):
        """An active code without account or balance gets them back."""
        ledger = make_ledger(rng=sequence_rng([4821]))
        await ledger.on_role_granted(ahmad, ahmad.user_id, "alumni", "Ahmad")
        await force_delete(
            ReferralAccount, [ReferralAccount.owner_id == ahmad.user_id]
        )
        await force_delete(
            CommissionBalance, [CommissionBalance.owner_id == ahmad.user_id]
        )

        code = await ledger.on_role_granted(
            ahmad, ahmad.user_id, "alumni", "Ahmad"
        )

        assert code.code == "SULTANAH-AHM4821"
        account = await ledger.get_account(ahmad.user_id)
        assert account.code == "SULTANAH-AHM4821"
        assert await count_rows(CommissionBalance, owner_id=ahmad.user_id) == 1


class TestCollisions:
    """Test suffix collisions and the fallback."""

    @pytest.mark.asyncio
    async def test_collision_draws_new_suffix(self, make_ledger, sequence_rng):
        ledger = make_ledger(rng=sequence_rng([4821, 4821, 1234]))
        first = Actor(user_id="owner-a")
        second = Actor(user_id="owner-b")

        await ledger.on_role_granted(first, "owner-a", "alumni", "Ahmad")
        code = await ledger.on_role_granted(second, "owner-b", "alumni", "Ahmed")

        assert code.code == "SULTANAH-AHM1234"

    @pytest.mark.asyncio
    async def test_timestamp_fallback(self, make_ledger, sequence_rng):
        ledger = make_ledger(
            rng=sequence_rng([4821] * 6),
            clock=lambda: 1_760_000_005_555,
        )
        await ledger.on_role_granted(
            Actor(user_id="owner-a"), "owner-a", "alumni", "Ahmad"
        )

        code = await ledger.on_role_granted(
            Actor(user_id="owner-b"), "owner-b", "alumni", "Ahmed"
        )

        assert code.code == "SULTANAH-AHM5555"

    @pytest.mark.asyncio
    async def test_exhaustion(self, make_ledger, sequence_rng, count_rows):
        """Every candidate taken: error and nothing written."""
        ledger = make_ledger(
            rng=sequence_rng([4821] * 6),
            clock=lambda: 1_760_000_004_821,
        )
        await ledger.on_role_granted(
            Actor(user_id="owner-a"), "owner-a", "alumni", "Ahmad"
        )

        with pytest.raises(CodeSpaceExhausted):
            await ledger.on_role_granted(
                Actor(user_id="owner-b"), "owner-b", "alumni", "Ahmed"
            )

        assert await count_rows(ReferralAccount, owner_id="owner-b") == 0
        assert await count_rows(CommissionBalance, owner_id="owner-b") == 0

    @pytest.mark.asyncio
    async def test_codes_unique_across_many_owners(self, ledger, count_rows):
        """Seeded draws for many same-prefix owners never duplicate."""
        codes = set()
        for index in range(40):
            owner_id = f"owner-{index}"
            record = await ledger.on_role_granted(
                Actor(user_id=owner_id), owner_id, "alumni", "Ahmad"
            )
            codes.add(record.code)

        assert len(codes) == 40
        assert await count_rows(ReferralCode) == 40


class TestLostRaces:
    """Races are decided by unique constraints, not by prior reads."""

    @pytest.mark.asyncio
    async def test_code_taken_between_check_and_insert(
        self, make_ledger, sequence_rng, monkeypatch, count_rows
    ):
        """Insert violating the code constraint moves on to the next draw."""
        ledger = make_ledger(rng=sequence_rng([4821, 4821, 2222]))
        await ledger.on_role_granted(
            Actor(user_id="owner-a"), "owner-a", "alumni", "Ahmad"
        )

        async def never_seen(self, code):
            return False

        monkeypatch.setattr(ReferralCodeRepository, "code_exists", never_seen)

        code = await ledger.on_role_granted(
            Actor(user_id="owner-b"), "owner-b", "alumni", "Ahmed"
        )

        assert code.code == "SULTANAH-AHM2222"
        assert await count_rows(ReferralAccount, owner_id="owner-b") == 1
        account = await ledger.get_account("owner-a")
        assert account.code == "SULTANAH-AHM4821"

    @pytest.mark.asyncio
    async def test_owner_got_code_concurrently(
        self, make_ledger, sequence_rng, ahmad, monkeypatch, count_rows
    ):
        """Losing to a concurrent issuance returns the winner's code."""
        ledger = make_ledger(rng=sequence_rng([4821, 7777]))
        winner = await ledger.on_role_granted(
            ahmad, ahmad.user_id, "alumni", "Ahmad"
        )

        original = ReferralCodeRepository.get_active_by_owner
        calls = {"count": 0}

        async def stale_first_read(self, owner_id):
            calls["count"] += 1
            if calls["count"] == 1:
                return None
            return await original(self, owner_id)

        monkeypatch.setattr(
            ReferralCodeRepository, "get_active_by_owner", stale_first_read
        )

        code = await ledger.on_role_granted(
            ahmad, ahmad.user_id, "alumni", "Ahmad"
        )

        assert code.code == winner.code
        assert await count_rows(ReferralCode, owner_id=ahmad.user_id) == 1


class TestDeactivation:
    """Test admin deactivation and re-issuance."""

    @pytest.mark.asyncio
    async def test_deactivated_code_stops_resolving(
        self, make_ledger, sequence_rng, admin, ahmad
    ):
        ledger = make_ledger(rng=sequence_rng([4821]))
        await ledger.on_role_granted(ahmad, ahmad.user_id, "alumni", "Ahmad")

        record = await ledger.deactivate_code(admin, "SULTANAH-AHM4821")

        assert record.is_active is False
        with pytest.raises(NotFound):
            await ledger.lookup_owner_by_code("SULTANAH-AHM4821")
        with pytest.raises(NotFound):
            await ledger.get_active_code(ahmad.user_id)

    @pytest.mark.asyncio
    async def test_only_admin_deactivates(
        self, make_ledger, sequence_rng, ahmad
    ):
        ledger = make_ledger(rng=sequence_rng([4821]))
        await ledger.on_role_granted(ahmad, ahmad.user_id, "alumni", "Ahmad")

        with pytest.raises(PermissionDenied):
            await ledger.deactivate_code(ahmad, "SULTANAH-AHM4821")

    @pytest.mark.asyncio
    async def test_unknown_code(self, ledger, admin):
        with pytest.raises(NotFound):
            await ledger.deactivate_code(admin, "SULTANAH-NOPE0000")

    @pytest.mark.asyncio
    async def test_reissue_keeps_account_history(
        self, make_ledger, sequence_rng, admin, ahmad, earn
    ):
        ledger = make_ledger(rng=sequence_rng([4821, 5555]))
        await ledger.on_role_granted(ahmad, ahmad.user_id, "alumni", "Ahmad")
        await earn(ledger, ahmad.user_id, "jamaah-1", 200_000)
        await ledger.deactivate_code(admin, "SULTANAH-AHM4821")

        code = await ledger.on_role_granted(
            ahmad, ahmad.user_id, "alumni", "Ahmad"
        )

        assert code.code == "SULTANAH-AHM5555"
        account = await ledger.get_account(ahmad.user_id)
        assert account.code == "SULTANAH-AHM5555"
        assert account.total_referrals == 1
        assert account.total_commission == 200_000
        assert (await ledger.get_balance(ahmad.user_id)).balance == 200_000


class TestAccountListing:
    """Test the admin listing of referral accounts."""

    @pytest_asyncio.fixture
    async def owners(self, make_ledger, sequence_rng):
        ledger = make_ledger(rng=sequence_rng([1111, 2222, 3333, 4444]))
        for owner_id, name in [
            ("user-ahmad", "Ahmad Fauzi"),
            ("user-budi", "Budi Santoso"),
            ("user-ahmed", "Ahmed Rizki"),
            ("user-citra", "Citra Lestari"),
        ]:
            await ledger.on_role_granted(
                Actor(user_id=owner_id), owner_id, "alumni", name
            )
        return ledger

    @pytest.mark.asyncio
    async def test_newest_first(self, owners):
        accounts = await owners.list_accounts()

        assert [account.owner_id for account in accounts] == [
            "user-citra",
            "user-ahmed",
            "user-budi",
            "user-ahmad",
        ]

    @pytest.mark.asyncio
    async def test_paging(self, owners):
        page = await owners.list_accounts(limit=2, offset=1)

        assert [account.owner_id for account in page] == [
            "user-ahmed",
            "user-budi",
        ]

    @pytest.mark.asyncio
    async def test_code_search_is_case_insensitive(self, owners):
        matches = await owners.list_accounts(code_query="  ahm ")

        assert [account.code for account in matches] == [
            "SULTANAH-AHM3333",
            "SULTANAH-AHM1111",
        ]

    @pytest.mark.asyncio
    async def test_search_without_matches(self, owners):
        assert await owners.list_accounts(code_query="XYZ") == []

    @pytest.mark.asyncio
    async def test_wildcards_are_literal(self, owners):
        assert await owners.list_accounts(code_query="%") == []
