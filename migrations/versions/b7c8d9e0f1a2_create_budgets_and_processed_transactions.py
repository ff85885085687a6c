"""create budgets and processed_transactions tables

Revision ID: b7c8d9e0f1a2
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b7c8d9e0f1a2'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'budgets',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('category_id', sa.String(64), nullable=False),
        sa.Column('amount', sa.Numeric(precision=20, scale=2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('period', sa.String(16), nullable=False),
        sa.Column('period_start', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('period_end', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('spent', sa.Numeric(precision=20, scale=2), nullable=False, server_default='0'),
        sa.Column('alert_percent', sa.Numeric(precision=5, scale=2), nullable=False, server_default='80'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('period_start <= period_end', name='ck_budget_window'),
        sa.CheckConstraint('spent >= 0', name='ck_budget_spent_non_negative'),
    )
    op.create_index('ix_budgets_user_created', 'budgets', ['user_id', 'created_at'])
    op.create_index(
        'ix_budgets_user_category_window',
        'budgets',
        ['user_id', 'category_id', 'period_start', 'period_end'],
    )

    op.create_table(
        'processed_transactions',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('transaction_id', sa.String(64), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('processed_at', sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index('ix_processed_transactions_user_id', 'processed_transactions', ['user_id'])


def downgrade() -> None:
    op.drop_index('ix_processed_transactions_user_id', table_name='processed_transactions')
    op.drop_table('processed_transactions')
    op.drop_index('ix_budgets_user_category_window', table_name='budgets')
    op.drop_index('ix_budgets_user_created', table_name='budgets')
    op.drop_table('budgets')
