"""Create commission ledger tables

Revision ID: 20261019_000001
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Master index of issued codes
    op.create_table(
        'referral_codes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(32), nullable=False),
        sa.Column('owner_id', sa.String(128), nullable=False),
        sa.Column('owner_role', sa.String(16), nullable=False),
        sa.Column('commission_per_conversion', sa.BigInteger(), nullable=False,
                  comment='Configured commission rate when the code was issued'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_referral_codes'),
        sa.UniqueConstraint('code', name='uq_referral_codes_code'),
    )
    op.create_index('ix_referral_codes_owner_id', 'referral_codes', ['owner_id'])
    # At most one active code per owner
    op.create_index(
        'uq_referral_codes_active_owner', 'referral_codes', ['owner_id'],
        unique=True, postgresql_where=sa.text('is_active'),
    )

    op.create_table(
        'referral_accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.String(128), nullable=False),
        sa.Column('code', sa.String(32), nullable=False),
        sa.Column('total_referrals', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('successful_referrals', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_commission', sa.BigInteger(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_referral_accounts'),
        sa.UniqueConstraint('owner_id', name='uq_referral_accounts_owner_id'),
        sa.CheckConstraint('total_referrals >= 0', name='ck_referral_accounts_total_referrals_non_negative'),
        sa.CheckConstraint(
            'successful_referrals >= 0 AND successful_referrals <= total_referrals',
            name='ck_referral_accounts_successful_within_total',
        ),
        sa.CheckConstraint('total_commission >= 0', name='ck_referral_accounts_total_commission_non_negative'),
    )
    op.create_index('ix_referral_accounts_code', 'referral_accounts', ['code'])

    op.create_table(
        'referral_tracking',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referrer_id', sa.String(128), nullable=False),
        sa.Column('referred_user_id', sa.String(128), nullable=False),
        sa.Column('referral_code', sa.String(32), nullable=False),
        sa.Column('status', sa.String(32), nullable=False, server_default='registered'),
        sa.Column('commission_amount', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('payment_submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('converted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_referral_tracking'),
        sa.UniqueConstraint('referred_user_id', name='uq_referral_tracking_referred_user_id'),
        sa.CheckConstraint('commission_amount >= 0', name='ck_referral_tracking_commission_amount_non_negative'),
    )
    op.create_index('ix_referral_tracking_referrer_id', 'referral_tracking', ['referrer_id'])
    op.create_index('idx_referral_tracking_referrer_status', 'referral_tracking', ['referrer_id', 'status'])

    op.create_table(
        'commission_balances',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.String(128), nullable=False),
        sa.Column('balance', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('reserved', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('total_earned', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('total_withdrawn', sa.BigInteger(), nullable=False, server_default='0'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_commission_balances'),
        sa.UniqueConstraint('owner_id', name='uq_commission_balances_owner_id'),
        sa.CheckConstraint('balance >= 0', name='ck_commission_balances_balance_non_negative'),
        sa.CheckConstraint('reserved >= 0', name='ck_commission_balances_reserved_non_negative'),
        sa.CheckConstraint('total_earned >= 0', name='ck_commission_balances_total_earned_non_negative'),
        sa.CheckConstraint('total_withdrawn >= 0', name='ck_commission_balances_total_withdrawn_non_negative'),
        sa.CheckConstraint(
            'balance = total_earned - total_withdrawn - reserved',
            name='ck_commission_balances_balance_conservation',
        ),
    )

    op.create_table(
        'commission_withdrawals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.String(128), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('payout_method', sa.String(32), nullable=False),
        sa.Column('bank_name', sa.String(100), nullable=True),
        sa.Column('account_number', sa.String(64), nullable=True),
        sa.Column('account_holder_name', sa.String(255), nullable=True),
        sa.Column('ewallet_provider', sa.String(100), nullable=True),
        sa.Column('ewallet_number', sa.String(64), nullable=True),
        sa.Column('ewallet_account_name', sa.String(255), nullable=True),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('processed_by', sa.String(128), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('transfer_proof_ref', sa.String(512), nullable=True,
                  comment='Reference to the externally stored transfer receipt'),
        sa.Column('request_date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('processed_date', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_commission_withdrawals'),
        sa.CheckConstraint('amount > 0', name='ck_commission_withdrawals_amount_positive'),
    )
    op.create_index('ix_commission_withdrawals_owner_id', 'commission_withdrawals', ['owner_id'])
    op.create_index('idx_commission_withdrawals_owner_status', 'commission_withdrawals', ['owner_id', 'status'])
    op.create_index('idx_commission_withdrawals_status_date', 'commission_withdrawals', ['status', 'request_date'])

    op.create_table(
        'owner_notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.String(128), nullable=False),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=True),
        sa.Column('reference_id', sa.Integer(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id', name='pk_owner_notifications'),
    )
    op.create_index('idx_owner_notifications_owner_read', 'owner_notifications', ['owner_id', 'is_read'])


def downgrade() -> None:
    op.drop_index('idx_owner_notifications_owner_read', 'owner_notifications')
    op.drop_table('owner_notifications')

    op.drop_index('idx_commission_withdrawals_status_date', 'commission_withdrawals')
    op.drop_index('idx_commission_withdrawals_owner_status', 'commission_withdrawals')
    op.drop_index('ix_commission_withdrawals_owner_id', 'commission_withdrawals')
    op.drop_table('commission_withdrawals')

    op.drop_table('commission_balances')

    op.drop_index('idx_referral_tracking_referrer_status', 'referral_tracking')
    op.drop_index('ix_referral_tracking_referrer_id', 'referral_tracking')
    op.drop_table('referral_tracking')

    op.drop_index('ix_referral_accounts_code', 'referral_accounts')
    op.drop_table('referral_accounts')

    op.drop_index('uq_referral_codes_active_owner', 'referral_codes')
    op.drop_index('ix_referral_codes_owner_id', 'referral_codes')
    op.drop_table('referral_codes')
