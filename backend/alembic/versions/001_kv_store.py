"""Create the kv_store table backing every record.

Revision ID: 001_kv_store
Revises:
Create Date: 2026-10-17

One row per key: `{tag}:{id}` (or `{tag}:{scope}:{id}`) -> JSON document.
On PostgreSQL a text_pattern_ops index serves the `LIKE 'prefix%'` scans.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_kv_store'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'kv_store',
        sa.Column('key', sa.String(512), primary_key=True),
        sa.Column('value', sa.JSON(), nullable=True),
        sa.Column(
            'updated_at', sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
    )
    if op.get_bind().dialect.name == 'postgresql':
        op.create_index(
            'ix_kv_store_key_prefix', 'kv_store',
            [sa.text('key text_pattern_ops')],
        )


def downgrade() -> None:
    if op.get_bind().dialect.name == 'postgresql':
        op.drop_index('ix_kv_store_key_prefix', table_name='kv_store')
    op.drop_table('kv_store')
