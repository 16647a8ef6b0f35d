"""User performance documents

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the user_performances table (one row per puuid + region)."""
    op.create_table(
        'user_performances',
        sa.Column('puuid', sa.String(), nullable=False),
        sa.Column('region', sa.String(), nullable=False),
        sa.Column('riot_id', sa.String(), nullable=False),
        sa.Column('matches', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('puuid', 'region')
    )
    op.create_index('ix_user_performances_updated_at', 'user_performances', ['updated_at'])


def downgrade() -> None:
    """Drop the user_performances table."""
    op.drop_index('ix_user_performances_updated_at', 'user_performances')
    op.drop_table('user_performances')
