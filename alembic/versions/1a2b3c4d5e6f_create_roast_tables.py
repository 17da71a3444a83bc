"""create entitlement, free tier, payment session and roast result tables

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1a2b3c4d5e6f'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

roast_plan = sa.Enum('free', 'starter', 'pro', name='roastplan')
funding_source = sa.Enum('credit', 'payment', 'free_grant', name='fundingsource')


def upgrade() -> None:
    """Create the entitlement ledgers and the results table"""
    op.create_table(
        'entitlements',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('principal_id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('roasts_remaining', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_roasts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('plan', roast_plan, nullable=False, server_default='free'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('last_roast_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('roasts_remaining >= 0', name='ck_entitlements_remaining_non_negative'),
        sa.CheckConstraint('total_roasts >= 0', name='ck_entitlements_total_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_entitlements_id'), 'entitlements', ['id'], unique=False)
    op.create_index(op.f('ix_entitlements_principal_id'), 'entitlements', ['principal_id'], unique=True)
    op.create_index(op.f('ix_entitlements_email'), 'entitlements', ['email'], unique=False)

    op.create_table(
        'free_tier_grants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('result_id', sa.String(length=32), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_free_tier_grants_id'), 'free_tier_grants', ['id'], unique=False)
    op.create_index(op.f('ix_free_tier_grants_email'), 'free_tier_grants', ['email'], unique=True)

    op.create_table(
        'payment_sessions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('session_id', sa.String(length=255), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('amount', sa.Integer(), nullable=True),
        sa.Column('currency', sa.String(length=10), nullable=True),
        sa.Column('principal_id', sa.String(length=255), nullable=True),
        sa.Column('pack', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_payment_sessions_id'), 'payment_sessions', ['id'], unique=False)
    op.create_index(op.f('ix_payment_sessions_session_id'), 'payment_sessions', ['session_id'], unique=True)
    op.create_index(op.f('ix_payment_sessions_principal_id'), 'payment_sessions', ['principal_id'], unique=False)

    op.create_table(
        'roast_results',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('result_id', sa.String(length=32), nullable=False),
        sa.Column('funded_by', funding_source, nullable=False),
        sa.Column('principal_id', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('payment_session_id', sa.String(length=255), nullable=True),
        sa.Column('grade', sa.String(length=4), nullable=False),
        sa.Column('headline', sa.String(length=255), nullable=False),
        sa.Column('rejection', sa.Text(), nullable=False),
        sa.Column('hiring_manager_quote', sa.Text(), nullable=False),
        sa.Column('improvements', sa.JSON(), nullable=False),
        sa.Column('skill_gaps', sa.JSON(), nullable=False),
        sa.Column('ats_score', sa.Integer(), nullable=True),
        sa.Column('analysis', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_roast_results_id'), 'roast_results', ['id'], unique=False)
    op.create_index(op.f('ix_roast_results_result_id'), 'roast_results', ['result_id'], unique=True)
    op.create_index(op.f('ix_roast_results_funded_by'), 'roast_results', ['funded_by'], unique=False)
    op.create_index(op.f('ix_roast_results_principal_id'), 'roast_results', ['principal_id'], unique=False)
    op.create_index(op.f('ix_roast_results_created_at'), 'roast_results', ['created_at'], unique=False)


def downgrade() -> None:
    """Drop all roast tables"""
    op.drop_table('roast_results')
    op.drop_table('payment_sessions')
    op.drop_table('free_tier_grants')
    op.drop_table('entitlements')
    funding_source.drop(op.get_bind(), checkfirst=True)
    roast_plan.drop(op.get_bind(), checkfirst=True)
