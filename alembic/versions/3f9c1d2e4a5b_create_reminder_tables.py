"""create schedules, sent_reminders, schedule_cache and cron_run_logs tables

Revision ID: 3f9c1d2e4a5b
Revises:
Create Date: 2026-10-17 09:12:31.418207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f9c1d2e4a5b'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'schedules',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('deadline', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('reminder_date', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('person_assigned', sa.String(length=200), nullable=False),
        sa.Column('person_email', sa.String(length=320), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_schedules')),
    )
    op.create_index('idx_schedules_status', 'schedules', ['status'], unique=False)

    op.create_table(
        'sent_reminders',
        sa.Column('key', sa.String(length=255), nullable=False),
        sa.Column('schedule_id', sa.String(length=64), nullable=False),
        sa.Column('bucket_date', sa.String(length=10), nullable=False),
        sa.Column('granularity', sa.String(length=10), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('person_email', sa.String(length=320), nullable=False),
        sa.Column('schedule_title', sa.String(length=200), nullable=False),
        sa.Column('message_id', sa.String(length=255), nullable=True),
        sa.PrimaryKeyConstraint('key', name=op.f('pk_sent_reminders')),
    )
    op.create_index('idx_sent_reminders_sent_at', 'sent_reminders', ['sent_at'], unique=False)
    op.create_index(
        'idx_sent_reminders_schedule_id', 'sent_reminders', ['schedule_id'], unique=False
    )

    op.create_table(
        'schedule_cache',
        sa.Column('cache_key', sa.String(length=100), nullable=False),
        sa.Column('schedules', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('schedule_count', sa.Integer(), nullable=False),
        sa.Column('last_synced', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('cache_key', name=op.f('pk_schedule_cache')),
    )

    op.create_table(
        'cron_run_logs',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('interval_ms', sa.BigInteger(), nullable=True),
        sa.Column('checked', sa.Integer(), nullable=False),
        sa.Column('sent', sa.Integer(), nullable=False),
        sa.Column('skipped', sa.Integer(), nullable=False),
        sa.Column('errors', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_cron_run_logs')),
    )
    op.create_index('idx_cron_run_logs_timestamp', 'cron_run_logs', ['timestamp'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_cron_run_logs_timestamp', table_name='cron_run_logs')
    op.drop_table('cron_run_logs')
    op.drop_table('schedule_cache')
    op.drop_index('idx_sent_reminders_schedule_id', table_name='sent_reminders')
    op.drop_index('idx_sent_reminders_sent_at', table_name='sent_reminders')
    op.drop_table('sent_reminders')
    op.drop_index('idx_schedules_status', table_name='schedules')
    op.drop_table('schedules')
