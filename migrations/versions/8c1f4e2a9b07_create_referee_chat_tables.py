"""Create referee chat tables

Revision ID: 8c1f4e2a9b07
Revises:
Create Date: 2026-10-18 09:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '8c1f4e2a9b07'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.Enum('EMPLOYEE', 'RECRUITER', name='userrole'), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('company', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'jobs',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('recruiter_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('company', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('ACTIVE', 'CLOSED', 'DRAFT', name='jobstatus'), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['recruiter_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_jobs_recruiter_id', 'jobs', ['recruiter_id'])

    op.create_table(
        'applications',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('job_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('employee_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            'status',
            sa.Enum(
                'SUBMITTED', 'UNDER_REVIEW', 'REFEREE_CONTACTED', 'VERIFIED', 'REJECTED', 'HIRED',
                name='applicationstatus',
            ),
            nullable=False,
        ),
        sa.Column('cover_letter', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.ForeignKeyConstraint(['employee_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_applications_job_id', 'applications', ['job_id'])
    op.create_index('ix_applications_employee_id', 'applications', ['employee_id'])

    op.create_table(
        'referees',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('application_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('relationship', sa.String(length=50), nullable=False),
        sa.Column('company', sa.String(length=255), nullable=True),
        sa.Column('position', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_referees_application_id', 'referees', ['application_id'])
    op.create_index('ix_referees_email', 'referees', ['email'])

    op.create_table(
        'referee_chats',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('application_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('recruiter_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('referee_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('referee_token', sa.String(length=128), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id']),
        sa.ForeignKeyConstraint(['recruiter_id'], ['users.id']),
        sa.ForeignKeyConstraint(['referee_id'], ['referees.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('application_id', 'referee_id', name='uq_referee_chats_application_referee'),
    )
    op.create_index('ix_referee_chats_application_id', 'referee_chats', ['application_id'])
    op.create_index('ix_referee_chats_recruiter_id', 'referee_chats', ['recruiter_id'])
    op.create_index('ix_referee_chats_referee_id', 'referee_chats', ['referee_id'])
    op.create_index('ix_referee_chats_token_hash', 'referee_chats', ['token_hash'])

    op.create_table(
        'referee_chat_messages',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('chat_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('sender_type', sa.Enum('RECRUITER', 'REFEREE', name='sendertype'), nullable=False),
        sa.Column('encrypted_content', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), server_default='false', nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['chat_id'], ['referee_chats.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('chat_id', 'position', name='uq_referee_chat_messages_chat_position'),
    )
    op.create_index('ix_referee_chat_messages_chat_id', 'referee_chat_messages', ['chat_id'])


def downgrade() -> None:
    op.drop_index('ix_referee_chat_messages_chat_id', table_name='referee_chat_messages')
    op.drop_table('referee_chat_messages')
    op.drop_index('ix_referee_chats_token_hash', table_name='referee_chats')
    op.drop_index('ix_referee_chats_referee_id', table_name='referee_chats')
    op.drop_index('ix_referee_chats_recruiter_id', table_name='referee_chats')
    op.drop_index('ix_referee_chats_application_id', table_name='referee_chats')
    op.drop_table('referee_chats')
    op.drop_index('ix_referees_email', table_name='referees')
    op.drop_index('ix_referees_application_id', table_name='referees')
    op.drop_table('referees')
    op.drop_index('ix_applications_employee_id', table_name='applications')
    op.drop_index('ix_applications_job_id', table_name='applications')
    op.drop_table('applications')
    op.drop_index('ix_jobs_recruiter_id', table_name='jobs')
    op.drop_table('jobs')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_table('users')
    op.execute('DROP TYPE sendertype')
    op.execute('DROP TYPE applicationstatus')
    op.execute('DROP TYPE jobstatus')
    op.execute('DROP TYPE userrole')
