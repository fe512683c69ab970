"""create room_snapshot table

Revision ID: 5c2d9e7a1b40
Revises:
Create Date: 2026-10-18 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9e7a1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'room_snapshot' in set(insp.get_table_names()):
        return
    op.create_table(
        'room_snapshot',
        sa.Column('code', sa.String(length=16), primary_key=True),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.Float(), nullable=False),
        sa.Column('updated_at', sa.Float(), nullable=False),
    )
    op.create_index('ix_room_snapshot_expires_at', 'room_snapshot', ['expires_at'])


def downgrade():
    op.drop_index('ix_room_snapshot_expires_at', table_name='room_snapshot')
    op.drop_table('room_snapshot')
