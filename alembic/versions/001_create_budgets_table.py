"""create budgets table

Revision ID: 001
Revises:
Create Date: 2026-01-12 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'budgets',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('number', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), server_default=sa.text('CURRENT_DATE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('plate', sa.String(20), nullable=False),
        sa.Column('make', sa.String(), nullable=True),
        sa.Column('model', sa.String(), nullable=True),
        sa.Column('owner', sa.String(), nullable=False),
        sa.Column('mileage', sa.String(20), nullable=True),
        sa.Column('vin', sa.String(32), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('parts_subtotal', sa.Numeric(precision=14, scale=2), server_default='0', nullable=False),
        sa.Column('labor_subtotal', sa.Numeric(precision=14, scale=2), server_default='0', nullable=False),
        sa.Column('total', sa.Numeric(precision=14, scale=2), server_default='0', nullable=False),
    )

    # Create indexes
    op.create_index('ix_budgets_id', 'budgets', ['id'], unique=False)
    op.create_index('ix_budgets_plate', 'budgets', ['plate'], unique=False)

    # Budget numbers are sequential and never reused
    op.create_unique_constraint('uq_budgets_number', 'budgets', ['number'])


def downgrade() -> None:
    op.drop_constraint('uq_budgets_number', 'budgets', type_='unique')
    op.drop_index('ix_budgets_plate', table_name='budgets')
    op.drop_index('ix_budgets_id', table_name='budgets')
    op.drop_table('budgets')
