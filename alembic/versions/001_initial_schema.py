"""Initial schema: users, tier limits and withdrawal requests.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table (id is the kit id)
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('network_id', sa.BigInteger(), nullable=True),
        sa.Column('verification_level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('otp_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('otp_secret', sa.String(64), nullable=True),
        sa.Column('settings', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_network_id', 'users', ['network_id'], unique=True)

    # Tier limits table
    op.create_table(
        'tier_limits',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tier', sa.Integer(), nullable=False),
        sa.Column('period', sa.String(8), nullable=False),
        sa.Column('type', sa.String(16), nullable=False),
        sa.Column('limit_currency', sa.String(20), nullable=False, server_default='default'),
        sa.Column('currency', sa.String(20), nullable=False),
        sa.Column('amount', sa.Numeric(36, 18), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_tier_limits_lookup', 'tier_limits', ['tier', 'period', 'type'])
    op.create_index(
        'ix_tier_limits_unique',
        'tier_limits',
        ['tier', 'period', 'type', 'limit_currency'],
        unique=True,
    )

    # Pending withdrawal requests, keyed by confirmation token
    op.create_table(
        'withdrawal_requests',
        sa.Column('token', sa.String(128), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('token'),
    )


def downgrade() -> None:
    op.drop_table('withdrawal_requests')
    op.drop_index('ix_tier_limits_unique', table_name='tier_limits')
    op.drop_index('ix_tier_limits_lookup', table_name='tier_limits')
    op.drop_table('tier_limits')
    op.drop_index('ix_users_network_id', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
