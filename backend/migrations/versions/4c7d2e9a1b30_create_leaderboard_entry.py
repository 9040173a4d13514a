"""create leaderboard_entry keyed by (category, rank)

Revision ID: 4c7d2e9a1b30
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c7d2e9a1b30'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'leaderboard_entry' in set(insp.get_table_names()):
        return

    op.create_table(
        'leaderboard_entry',
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('rank', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('player_name', sa.String(length=10), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('category', 'rank'),
    )


def downgrade():
    op.drop_table('leaderboard_entry')
