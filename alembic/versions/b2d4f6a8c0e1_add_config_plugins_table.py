"""Add config_plugins table for maintenance settings

Revision ID: b2d4f6a8c0e1
Revises: a1c3e5f7b9d2
Create Date: 2026-10-05 00:10:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'b2d4f6a8c0e1'
down_revision: Union[str, None] = 'a1c3e5f7b9d2'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # key/value store, maintenance settings are kept per opencast instance
    op.create_table('config_plugins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('plugin', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('plugin', 'name', name='uq_config_plugin_name')
    )
    op.create_index(op.f('ix_config_plugins_id'), 'config_plugins', ['id'], unique=False)
    op.create_index(op.f('ix_config_plugins_plugin'), 'config_plugins', ['plugin'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_config_plugins_plugin'), table_name='config_plugins')
    op.drop_index(op.f('ix_config_plugins_id'), table_name='config_plugins')
    op.drop_table('config_plugins')
