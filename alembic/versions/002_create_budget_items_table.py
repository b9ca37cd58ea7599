"""create budget_items table

Revision ID: 002
Revises: 001
Create Date: 2026-01-12 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

item_kind_enum = postgresql.ENUM('part', 'labor', name='budget_item_kind_enum', create_type=False)


def upgrade() -> None:
    item_kind_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'budget_items',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('budget_id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('kind', item_kind_enum, nullable=False),
        sa.Column('position', sa.Integer(), server_default='0', nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=10, scale=2), server_default='1', nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=14, scale=2), server_default='0', nullable=False),
        sa.Column('total', sa.Numeric(precision=14, scale=2), server_default='0', nullable=False),
    )

    # Create foreign key constraint
    op.create_foreign_key(
        'fk_budget_items_budget_id',
        'budget_items',
        'budgets',
        ['budget_id'],
        ['id'],
        ondelete='CASCADE'
    )

    # Create indexes
    op.create_index('ix_budget_items_id', 'budget_items', ['id'], unique=False)
    op.create_index('ix_budget_items_budget_id', 'budget_items', ['budget_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_budget_items_budget_id', table_name='budget_items')
    op.drop_index('ix_budget_items_id', table_name='budget_items')
    op.drop_constraint('fk_budget_items_budget_id', 'budget_items', type_='foreignkey')
    op.drop_table('budget_items')
    item_kind_enum.drop(op.get_bind(), checkfirst=True)
