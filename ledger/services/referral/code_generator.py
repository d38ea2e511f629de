"""
Referral code generation.

Issues one `PREFIX-XXXNNNN` code per qualifying owner. The code, the
owner's referral account and a zeroed balance row are written in one
transaction; unique constraints decide races instead of read-then-write.
"""

import random
import re
import unicodedata
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.config.business_constants import (
    REFERRAL_NAME_PREFIX_DEFAULT,
    REFERRAL_NAME_PREFIX_LENGTH,
    REFERRAL_NAME_PREFIX_PAD,
    REFERRAL_SUFFIX_MAX,
    REFERRAL_SUFFIX_MIN,
)
from ledger.models.enums import OwnerRole
from ledger.models.referral_code import ReferralCode
from ledger.repositories.referral_account_repository import (
    ReferralAccountRepository,
)
from ledger.repositories.referral_code_repository import ReferralCodeRepository
from ledger.services.actor import Actor
from ledger.services.balance_ledger import BalanceLedger
from ledger.services.base_service import BaseService, transaction
from ledger.services.events import LedgerEventType
from ledger.services.referral.config import commission_rate_for, parse_owner_role
from ledger.utils.datetime_utils import epoch_millis
from ledger.utils.exceptions import CodeSpaceExhausted

if TYPE_CHECKING:
    from ledger.config.settings import Settings


_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def derive_name_prefix(display_name: str | None) -> str:
    """
    Build the three-letter name part of a code.

    Examples:
        >>> derive_name_prefix("Ahmad Fauzi")
        'AHM'
        >>> derive_name_prefix("Al")
        'ALX'
        >>> derive_name_prefix("   ")
        'USR'
    """
    tokens = (display_name or "").split()
    first = tokens[0] if tokens else ""
    # Accented letters keep their base letter: "Élodie" -> "ELO"
    decomposed = unicodedata.normalize("NFKD", first)
    cleaned = _NON_ALNUM.sub("", decomposed).upper()
    if not cleaned:
        return REFERRAL_NAME_PREFIX_DEFAULT
    return cleaned[:REFERRAL_NAME_PREFIX_LENGTH].ljust(
        REFERRAL_NAME_PREFIX_LENGTH, REFERRAL_NAME_PREFIX_PAD
    )


class CodeGenerator(BaseService):
    """
    Issues referral codes.

    Args:
        session: Async database session
        settings: Ledger settings (prefix, attempts, rates)
        rng: Random source for suffixes, SystemRandom by default
        clock: Millisecond clock for the fallback suffix
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: "Settings",
        rng: random.Random | None = None,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        super().__init__(session)
        self.settings = settings
        self.rng = rng or random.SystemRandom()
        self.clock = clock
        self.code_repo = ReferralCodeRepository(session)
        self.account_repo = ReferralAccountRepository(session)
        self.balance_ledger = BalanceLedger(session)

    def format_code(self, name_prefix: str, suffix: str) -> str:
        return f"{self.settings.referral_code_prefix}-{name_prefix}{suffix}"

    def candidate_suffixes(self) -> Iterator[str]:
        """Random draws first, then one suffix from the clock."""
        for _ in range(self.settings.code_generation_max_attempts):
            yield str(self.rng.randint(REFERRAL_SUFFIX_MIN, REFERRAL_SUFFIX_MAX))
        yield f"{self.clock() % 10000:04d}"

    @transaction
    async def issue_code(
        self,
        actor: Actor,
        owner_id: str,
        owner_role: str | OwnerRole,
        display_name: str | None,
    ) -> ReferralCode:
        """
        Issue the owner's referral code, or return the one already active.

        Args:
            actor: Caller (owner or admin)
            owner_id: Owner identity
            owner_role: alumni or agent
            display_name: Owner's display name, first token becomes the prefix

        Returns:
            Active ReferralCode of the owner

        Raises:
            PermissionDenied: Caller may not act for the owner
            InvalidRequest: Role does not qualify
            CodeSpaceExhausted: Every candidate code was taken
        """
        actor.ensure_can_act_for(owner_id)
        role = parse_owner_role(owner_role)

        existing = await self.code_repo.get_active_by_owner(owner_id)
        if existing:
            await self._repair_ledger_rows(existing)
            return existing

        name_prefix = derive_name_prefix(display_name)
        attempts = 0
        for suffix in self.candidate_suffixes():
            attempts += 1
            code = self.format_code(name_prefix, suffix)
            if await self.code_repo.code_exists(code):
                self.logger.debug(
                    "Referral code collision",
                    extra={"code": code, "attempt": attempts},
                )
                continue

            try:
                record = await self._write_code(code, owner_id, role)
                await self.commit()
            except IntegrityError:
                await self.rollback()
                # Lost a race: either the owner got a code concurrently,
                # or another owner took this code value.
                existing = await self.code_repo.get_active_by_owner(owner_id)
                if existing:
                    return existing
                self.logger.debug(
                    "Referral code taken concurrently",
                    extra={"code": code, "attempt": attempts},
                )
                continue

            self.emit(
                LedgerEventType.REFERRAL_CODE_ISSUED,
                owner_id,
                code=record.code,
                role=role.value,
            )
            self.logger.info(
                "Referral code issued",
                extra={
                    "owner_id": owner_id,
                    "code": record.code,
                    "role": role.value,
                    "attempts": attempts,
                },
            )
            return record

        raise CodeSpaceExhausted(
            "Could not find a free referral code",
            owner_id=owner_id,
            name_prefix=name_prefix,
            attempts=attempts,
        )

    async def _write_code(
        self, code: str, owner_id: str, role: OwnerRole
    ) -> ReferralCode:
        record = await self.code_repo.create(
            code=code,
            owner_id=owner_id,
            owner_role=role.value,
            commission_per_conversion=commission_rate_for(self.settings, role),
        )

        account = await self.account_repo.get_by_owner(owner_id)
        if account:
            # Owner had a code before it was deactivated; keep the history
            await self.account_repo.repoint_code(owner_id, code)
        else:
            await self.account_repo.create(owner_id=owner_id, code=code)

        await self.balance_ledger.open_balance(owner_id)
        return record

    async def _repair_ledger_rows(self, record: ReferralCode) -> None:
        account = await self.account_repo.get_by_owner(record.owner_id)
        if not account:
            self.logger.warning(
                "Active code without referral account, recreating",
                extra={"owner_id": record.owner_id, "code": record.code},
            )
            await self.account_repo.create(
                owner_id=record.owner_id, code=record.code
            )
        elif account.code != record.code:
            await self.account_repo.repoint_code(record.owner_id, record.code)

        await self.balance_ledger.open_balance(record.owner_id)
