"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-01-01 00:00:00.000000

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
    """
    Create the shorteners table:
    - short_key and original_url are unique among active (not deleted) rows
    - user_id is indexed for listing and deletes
    """
    op.create_table(
        'shorteners',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('short_key', sa.String(length=10), nullable=False),
        sa.Column('original_url', sa.Text(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_index(
        'ix_shorteners_short_key_active',
        'shorteners',
        ['short_key'],
        unique=True,
        sqlite_where=sa.text('is_deleted = 0'),
        postgresql_where=sa.text('is_deleted = false')
    )

    op.create_index(
        'ix_shorteners_original_url_active',
        'shorteners',
        ['original_url'],
        unique=True,
        sqlite_where=sa.text('is_deleted = 0'),
        postgresql_where=sa.text('is_deleted = false')
    )

    op.create_index(
        'ix_shorteners_user_id',
        'shorteners',
        ['user_id']
    )


def downgrade() -> None:
    op.drop_index('ix_shorteners_user_id', table_name='shorteners')
    op.drop_index('ix_shorteners_original_url_active', table_name='shorteners')
    op.drop_index('ix_shorteners_short_key_active', table_name='shorteners')
    op.drop_table('shorteners')
