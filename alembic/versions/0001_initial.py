"""Initial schema: users, interviews, settings, conversations, candidate notes

Revision ID: 0001_initial
Revises: None
Create Date: 2026-10-17 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector

revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

MEETING_CATEGORIES = (
    'Interview', 'Client Debrief', 'Sales Meeting', 'Status Update',
    'Planning Meeting', 'Team Sync', 'Client Call', '1-on-1', 'All Hands',
    'Standup', 'Retrospective', 'Demo', 'Other',
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == 'postgresql':
        op.execute('CREATE EXTENSION IF NOT EXISTS vector')

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255)),
        sa.Column('image', sa.String(512)),
        *_timestamps(),
    )

    op.create_table(
        'interviews',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner_email', sa.String(255)),
        sa.Column('meeting_code', sa.String(50)),
        sa.Column('meeting_title', sa.String(255)),
        sa.Column('meeting_type', sa.String(40)),
        sa.Column('meeting_date', sa.DateTime()),
        sa.Column('interviewer', sa.String(200)),
        sa.Column('candidate_id', sa.String(64)),
        sa.Column('candidate_name', sa.String(200)),
        sa.Column('candidate_email', sa.String(254)),
        sa.Column('position', sa.String(200)),
        sa.Column('transcript', sa.Text(), nullable=False),
        sa.Column('transcript_file_name', sa.String(512)),
        sa.Column('drive_file_id', sa.String(128)),
        sa.Column('summary', sa.Text()),
        sa.Column('rating', sa.String(40)),
        sa.Column('submitted_at', sa.DateTime()),
        sa.Column('embedding', Vector(768)),
        *_timestamps(),
        sa.CheckConstraint(
            "meeting_type IS NULL OR meeting_type IN (%s)" % ", ".join("'%s'" % c for c in MEETING_CATEGORIES),
            name='check_meeting_type',
        ),
    )
    op.create_index('ix_interviews_owner_email', 'interviews', ['owner_email'])
    op.create_index('ix_interviews_meeting_type', 'interviews', ['meeting_type'])
    op.create_index('ix_interviews_meeting_date', 'interviews', ['meeting_date'])
    op.create_index('ix_interviews_transcript_file_name', 'interviews', ['transcript_file_name'])
    op.create_index('ix_interviews_drive_file_id', 'interviews', ['drive_file_id'])

    op.create_table(
        'user_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_email', sa.String(255), nullable=False),
        sa.Column('drive_folder_id', sa.String(100)),
        sa.Column('folder_name', sa.String(255)),
        sa.Column('auto_poll_enabled', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('poll_interval_minutes', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('last_poll_time', sa.DateTime()),
        sa.Column('last_poll_file_count', sa.Integer(), server_default='0'),
        sa.Column('encrypted_refresh_token', sa.Text()),
        *_timestamps(),
    )
    op.create_index('ix_user_settings_user_email', 'user_settings', ['user_email'], unique=True)

    op.create_table(
        'ai_conversations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_email', sa.String(255), nullable=False),
        sa.Column('user_name', sa.String(255)),
        sa.Column('interview_id', sa.Integer(), sa.ForeignKey('interviews.id', ondelete='SET NULL')),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('messages', sa.JSON(), nullable=False),
        sa.Column('message_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_message_at', sa.DateTime(), server_default=sa.func.now()),
        *_timestamps(),
    )
    op.create_index('ix_ai_conversations_user_email', 'ai_conversations', ['user_email'])
    op.create_index('ix_ai_conversations_last_message_at', 'ai_conversations', ['last_message_at'])

    op.create_table(
        'candidate_notes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('candidate_email', sa.String(254), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_by', sa.String(255)),
        *_timestamps(),
    )
    op.create_index('ix_candidate_notes_candidate_email', 'candidate_notes', ['candidate_email'])

    op.create_table(
        'candidate_profiles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('candidate_email', sa.String(254), nullable=False, unique=True),
        sa.Column('name', sa.String(200)),
        sa.Column('position', sa.String(200)),
        sa.Column('years_experience', sa.String(20)),
        sa.Column('links', sa.JSON()),
        sa.Column('details', sa.JSON()),
        *_timestamps(),
    )


def downgrade() -> None:
    for name in ('candidate_profiles', 'candidate_notes', 'ai_conversations', 'user_settings', 'interviews', 'users'):
        op.drop_table(name)
