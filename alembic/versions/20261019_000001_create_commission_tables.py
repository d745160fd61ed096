"""Create users, orders, commission_rates and commissions tables.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19

Creates the sponsor forest (users.sponsor_id), orders, the per-level rate
configuration seeded with the default rates, and the commission ledger with
its (order_id, user_id, level) unique constraint.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create commission engine tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('ibo_number', sa.String(32), nullable=False),
        sa.Column('sponsor_number', sa.String(32), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='distributor'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('sponsor_id', sa.Integer(), nullable=True),
        sa.Column('bank_name', sa.String(100), nullable=True),
        sa.Column('bank_account_number', sa.String(50), nullable=True),
        sa.Column('bank_branch_code', sa.String(20), nullable=True),
        sa.Column('bank_account_type', sa.String(30), nullable=True),
        sa.Column('bank_account_holder', sa.String(255), nullable=True),
        sa.Column('address_line1', sa.String(255), nullable=True),
        sa.Column('address_line2', sa.String(255), nullable=True),
        sa.Column('suburb', sa.String(100), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('province', sa.String(100), nullable=True),
        sa.Column('postal_code', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['sponsor_id'], ['users.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('sponsor_id IS NULL OR sponsor_id <> id', name='check_user_not_own_sponsor'),
        sa.CheckConstraint("role IN ('admin', 'distributor')", name='check_user_role'),
        sa.CheckConstraint("status IN ('active', 'inactive')", name='check_user_status'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_ibo_number', 'users', ['ibo_number'], unique=True)
    op.create_index('ix_users_sponsor_number', 'users', ['sponsor_number'], unique=True)
    op.create_index('ix_users_status', 'users', ['status'])
    op.create_index('ix_users_sponsor_id', 'users', ['sponsor_id'])

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_number', sa.String(50), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('total_amount', sa.DECIMAL(18, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('total_amount >= 0', name='check_order_total_non_negative'),
        sa.CheckConstraint(
            "status IN ('pending', 'processing', 'shipped', 'delivered', 'cancelled')",
            name='check_order_status',
        ),
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])

    commission_rates = op.create_table(
        'commission_rates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('percentage', sa.DECIMAL(5, 4), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('level BETWEEN 1 AND 3', name='check_commission_rate_level'),
        sa.CheckConstraint(
            'percentage >= 0 AND percentage <= 1',
            name='check_commission_rate_percentage_range',
        ),
    )
    op.create_index('ix_commission_rates_level', 'commission_rates', ['level'])
    op.create_index('ix_commission_rates_is_active', 'commission_rates', ['is_active'])

    # Seed default rates: 10% / 5% / 2%
    op.bulk_insert(
        commission_rates,
        [
            {'level': 1, 'percentage': 0.10, 'is_active': True},
            {'level': 2, 'percentage': 0.05, 'is_active': True},
            {'level': 3, 'percentage': 0.02, 'is_active': True},
        ],
    )

    op.create_table(
        'commissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('rate', sa.DECIMAL(5, 4), nullable=False),
        sa.Column('commission_amount', sa.DECIMAL(18, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('payout_note', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id', 'user_id', 'level', name='uq_commissions_order_user_level'),
        sa.CheckConstraint('level BETWEEN 1 AND 3', name='check_commission_level'),
        sa.CheckConstraint('commission_amount >= 0', name='check_commission_amount_non_negative'),
        sa.CheckConstraint("status IN ('pending', 'paid')", name='check_commission_status'),
    )
    op.create_index('ix_commissions_user_id', 'commissions', ['user_id'])
    op.create_index('ix_commissions_order_id', 'commissions', ['order_id'])
    op.create_index('ix_commissions_status', 'commissions', ['status'])
    op.create_index('ix_commissions_created_at', 'commissions', ['created_at'])
    op.create_index(
        'idx_commissions_user_status_created',
        'commissions',
        ['user_id', 'status', 'created_at'],
    )


def downgrade() -> None:
    """Drop commission engine tables."""
    op.drop_index('idx_commissions_user_status_created', 'commissions')
    op.drop_index('ix_commissions_created_at', 'commissions')
    op.drop_index('ix_commissions_status', 'commissions')
    op.drop_index('ix_commissions_order_id', 'commissions')
    op.drop_index('ix_commissions_user_id', 'commissions')
    op.drop_table('commissions')

    op.drop_index('ix_commission_rates_is_active', 'commission_rates')
    op.drop_index('ix_commission_rates_level', 'commission_rates')
    op.drop_table('commission_rates')

    op.drop_index('ix_orders_status', 'orders')
    op.drop_index('ix_orders_user_id', 'orders')
    op.drop_index('ix_orders_order_number', 'orders')
    op.drop_table('orders')

    op.drop_index('ix_users_sponsor_id', 'users')
    op.drop_index('ix_users_status', 'users')
    op.drop_index('ix_users_sponsor_number', 'users')
    op.drop_index('ix_users_ibo_number', 'users')
    op.drop_index('ix_users_email', 'users')
    op.drop_table('users')
