"""create_atlas_tables

Revision ID: 7c1e4a9b2d30
Revises:
Create Date: 2026-10-18 09:12:03.114520

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = '7c1e4a9b2d30'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'profiles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('username', sa.String(64), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('bio', sa.Text, nullable=True),
        sa.Column('is_public_profile', sa.Boolean, server_default=sa.false(), nullable=False),
        sa.Column('created', sa.TIMESTAMP(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )
    op.create_unique_constraint('uq_profiles_username', 'profiles', ['username'])

    op.create_table(
        'dreams',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('slug', sa.String(120), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('dream_date', sa.Date, nullable=False),
        sa.Column('visibility', sa.String(20), server_default='private', nullable=False),
        sa.Column('created_at', sa.TIMESTAMP, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('image_url', sa.String(1000), nullable=True),
        sa.Column('thumbnail_url', sa.String(1000), nullable=True),
    )
    op.create_unique_constraint('uq_dreams_slug', 'dreams', ['slug'])
    op.create_index('ix_dreams_user_id', 'dreams', ['user_id'])
    op.create_index('ix_dreams_created_at', 'dreams', ['created_at'])
    op.create_index('ix_dreams_user_dream_date', 'dreams', ['user_id', 'dream_date'])
    op.create_index('ix_dreams_user_created', 'dreams', ['user_id', sa.text('created_at DESC')])

    # one current interpretation per dream; regenerate deletes then inserts
    op.create_table(
        'dream_summaries',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('dream_id', UUID(as_uuid=True), sa.ForeignKey('dreams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('summary_text', sa.Text, nullable=False),
        sa.Column('created_at', sa.TIMESTAMP, server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )
    op.create_index('ix_dream_summaries_dream_id', 'dream_summaries', ['dream_id'])

    op.create_table(
        'user_aggregate_summaries',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('period_start', sa.Date, nullable=False),
        sa.Column('period_end', sa.Date, nullable=False),
        sa.Column('summary_text', sa.Text, nullable=False),
        sa.Column('created_at', sa.TIMESTAMP, server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )
    op.create_index('ix_user_aggregate_summaries_user_id', 'user_aggregate_summaries', ['user_id'])
    op.create_index(
        'ix_aggregate_user_period', 'user_aggregate_summaries',
        ['user_id', 'period_start', 'period_end', sa.text('created_at DESC')],
    )

    op.create_table(
        'dream_chat_sessions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('period_start', sa.Date, nullable=False),
        sa.Column('period_end', sa.Date, nullable=False),
        sa.Column('created_at', sa.TIMESTAMP, server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )
    op.create_index('ix_dream_chat_sessions_user_id', 'dream_chat_sessions', ['user_id'])
    op.create_index('ix_dream_chat_sessions_created_at', 'dream_chat_sessions', ['created_at'])
    op.create_index(
        'ix_chat_sessions_user_period', 'dream_chat_sessions',
        ['user_id', 'period_start', 'period_end', sa.text('created_at DESC')],
    )

    op.create_table(
        'dream_chat_messages',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('session_id', UUID(as_uuid=True), sa.ForeignKey('dream_chat_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('created_at', sa.TIMESTAMP, server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
    )
    op.create_index('ix_dream_chat_messages_session_id', 'dream_chat_messages', ['session_id'])
    op.create_index('ix_dream_chat_messages_created_at', 'dream_chat_messages', ['created_at'])


def downgrade() -> None:
    op.drop_table('dream_chat_messages')
    op.drop_table('dream_chat_sessions')
    op.drop_table('user_aggregate_summaries')
    op.drop_table('dream_summaries')
    op.drop_table('dreams')
    op.drop_table('profiles')
