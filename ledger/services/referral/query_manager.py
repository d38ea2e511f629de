"""
Referral query management module.

Resolves codes to owners and reads referral accounts.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from ledger.config.business_constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from ledger.models.referral_account import ReferralAccount
from ledger.models.referral_code import ReferralCode
from ledger.repositories.referral_account_repository import (
    ReferralAccountRepository,
)
from ledger.repositories.referral_code_repository import ReferralCodeRepository
from ledger.services.actor import Actor
from ledger.services.base_service import BaseService, transaction
from ledger.utils.exceptions import NotFound


def normalize_code(code: str | None) -> str:
    """Trim and uppercase a user-entered referral code."""
    return (code or "").strip().upper()


class ReferralQueryManager(BaseService):
    """Manages referral code and account reads."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize query manager."""
        super().__init__(session)
        self.code_repo = ReferralCodeRepository(session)
        self.account_repo = ReferralAccountRepository(session)

    async def resolve_code(self, code: str | None) -> ReferralCode:
        """
        Resolve a code to its active record.

        Inactive codes, and codes whose owner has no account yet, do not
        resolve.

        Args:
            code: Referral code as entered by the user

        Returns:
            Active ReferralCode

        Raises:
            NotFound: Code does not resolve
        """
        normalized = normalize_code(code)
        if not normalized:
            raise NotFound("Referral code is empty")

        record = await self.code_repo.get_active_by_code(normalized)
        if not record:
            raise NotFound("Referral code not found", code=normalized)

        if not await self.account_repo.exists(owner_id=record.owner_id):
            raise NotFound(
                "Referral code is not ready yet",
                code=normalized,
                owner_id=record.owner_id,
            )
        return record

    async def lookup_owner_by_code(self, code: str | None) -> str:
        """Owner identity behind an active code."""
        record = await self.resolve_code(code)
        return record.owner_id

    async def get_account(self, owner_id: str) -> ReferralAccount:
        """
        Get the owner's referral account.

        Raises:
            NotFound: Owner has no account
        """
        account = await self.account_repo.get_by_owner(owner_id)
        if not account:
            raise NotFound("Referral account not found", owner_id=owner_id)
        return account

    async def get_active_code(self, owner_id: str) -> ReferralCode:
        """
        Get the owner's active code.

        Raises:
            NotFound: Owner has no active code
        """
        record = await self.code_repo.get_active_by_owner(owner_id)
        if not record:
            raise NotFound("No active referral code", owner_id=owner_id)
        return record

    async def list_accounts(
        self,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
        code_query: str | None = None,
    ) -> list[ReferralAccount]:
        """
        Page through referral accounts of all owners, newest first.

        Args:
            limit: Page size, capped at MAX_LIST_LIMIT
            offset: Number of accounts to skip
            code_query: Optional case-insensitive code fragment
        """
        return await self.account_repo.search(
            normalize_code(code_query) or None,
            limit=min(limit, MAX_LIST_LIMIT),
            offset=max(offset, 0),
        )

    @transaction
    async def deactivate_code(self, actor: Actor, code: str) -> ReferralCode:
        """
        Deactivate a code (admin only).

        A deactivated code stops resolving. Deactivating an inactive code
        is a no-op.

        Raises:
            PermissionDenied: Caller is not an admin
            NotFound: Code was never issued
        """
        actor.ensure_admin()
        normalized = normalize_code(code)

        updated = await self.code_repo.deactivate(normalized)
        record = await self.code_repo.get_by_code(normalized)
        if not record:
            raise NotFound("Referral code not found", code=normalized)

        if updated:
            self.logger.info(
                "Referral code deactivated",
                extra={
                    "code": normalized,
                    "owner_id": record.owner_id,
                    "admin_id": actor.user_id,
                },
            )
        return record
