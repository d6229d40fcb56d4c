"""create_poll_tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1b2c3d4e5f6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'polls',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(length=16), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.String(length=64), nullable=False),
        sa.Column('created_by_name', sa.String(length=200), nullable=False),
        sa.Column('created_by_image', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
    )
    op.create_index('idx_polls_created_at', 'polls', ['created_at'])

    op.create_table(
        'poll_options',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('poll_id', sa.String(length=36),
                  sa.ForeignKey('polls.id', ondelete='CASCADE'), nullable=False),
        sa.Column('text', sa.String(length=500), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.UniqueConstraint('poll_id', 'order_index', name='uq_poll_option_order'),
    )
    op.create_index('idx_poll_options_poll', 'poll_options', ['poll_id'])

    op.create_table(
        'poll_votes',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('poll_id', sa.String(length=36),
                  sa.ForeignKey('polls.id', ondelete='CASCADE'), nullable=False),
        sa.Column('option_id', sa.String(length=36),
                  sa.ForeignKey('poll_options.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('option_id', 'user_id', name='uq_option_user'),
    )
    op.create_index('idx_poll_votes_poll_user', 'poll_votes', ['poll_id', 'user_id'])
    op.create_index('idx_poll_votes_option', 'poll_votes', ['option_id'])

    op.create_table(
        'activity_history',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('action', sa.String(length=200), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('user_id', sa.String(length=64), nullable=True),
        sa.Column('user_name', sa.String(length=200), nullable=False),
        sa.Column('user_image', sa.String(length=500), nullable=True),
        sa.Column('target_id', sa.String(length=36), nullable=True),
        sa.Column('target_title', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('idx_activity_history_created_at', 'activity_history', ['created_at'])


def downgrade():
    op.drop_index('idx_activity_history_created_at', table_name='activity_history')
    op.drop_table('activity_history')
    op.drop_index('idx_poll_votes_option', table_name='poll_votes')
    op.drop_index('idx_poll_votes_poll_user', table_name='poll_votes')
    op.drop_table('poll_votes')
    op.drop_index('idx_poll_options_poll', table_name='poll_options')
    op.drop_table('poll_options')
    op.drop_index('idx_polls_created_at', table_name='polls')
    op.drop_table('polls')
