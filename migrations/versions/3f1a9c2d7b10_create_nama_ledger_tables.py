"""create users, nama_accounts, user_account_links and nama_entries

Revision ID: 3f1a9c2d7b10
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2d7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('whatsapp', sa.String(32), nullable=True),
        sa.Column('city', sa.String(128), nullable=True),
        sa.Column('state', sa.String(128), nullable=True),
        sa.Column('country', sa.String(128), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_users_city', 'users', ['city'])

    op.create_table(
        'nama_accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('target_goal', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.text('now()'), nullable=False),
    )
    # Case-insensitive uniqueness of account names
    op.create_index('uq_nama_accounts_name_lower', 'nama_accounts',
                    [sa.text('lower(name)')], unique=True)

    op.create_table(
        'user_account_links',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('account_id', sa.Integer(),
                  sa.ForeignKey('nama_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('user_id', 'account_id', name='uq_user_account_link'),
    )
    op.create_index('ix_user_account_links_user_id', 'user_account_links', ['user_id'])
    op.create_index('ix_user_account_links_account_id', 'user_account_links', ['account_id'])

    op.create_table(
        'nama_entries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(),
                  sa.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('account_id', sa.Integer(),
                  sa.ForeignKey('nama_accounts.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False),
        sa.Column('source_type', sa.String(32), nullable=False, server_default='manual'),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True),
                  server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('count >= 0', name='ck_nama_entries_count_non_negative'),
    )
    op.create_index('ix_nama_entries_entry_date', 'nama_entries', ['entry_date'])
    op.create_index('ix_nama_entries_account_date', 'nama_entries', ['account_id', 'entry_date'])
    op.create_index('ix_nama_entries_user_date', 'nama_entries', ['user_id', 'entry_date'])


def downgrade() -> None:
    op.drop_index('ix_nama_entries_user_date', table_name='nama_entries')
    op.drop_index('ix_nama_entries_account_date', table_name='nama_entries')
    op.drop_index('ix_nama_entries_entry_date', table_name='nama_entries')
    op.drop_table('nama_entries')
    op.drop_index('ix_user_account_links_account_id', table_name='user_account_links')
    op.drop_index('ix_user_account_links_user_id', table_name='user_account_links')
    op.drop_table('user_account_links')
    op.drop_index('uq_nama_accounts_name_lower', table_name='nama_accounts')
    op.drop_table('nama_accounts')
    op.drop_index('ix_users_city', table_name='users')
    op.drop_table('users')
