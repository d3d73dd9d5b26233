"""Add hiring pipeline tables

Revision ID: 0001
Revises:
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_INTERVIEW = sa.text("status IN ('scheduled', 'rescheduled')")


def upgrade() -> None:
    # Read-side copies of the job catalogue and team membership
    op.create_table(
        'job_postings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.String(length=255), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_job_postings_company_id', 'job_postings', ['company_id'], unique=False)

    op.create_table(
        'company_members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('company_id', sa.String(length=255), nullable=False),
        sa.Column('actor_id', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('company_id', 'actor_id', name='uq_company_members_actor')
    )
    op.create_index('ix_company_members_company_id', 'company_members', ['company_id'], unique=False)
    op.create_index('ix_company_members_actor_id', 'company_members', ['actor_id'], unique=False)

    op.create_table(
        'job_applications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('job_id', sa.Integer(), nullable=False),
        sa.Column('candidate_id', sa.String(length=255), nullable=False),
        sa.Column('company_id', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=30), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('cover_letter', sa.Text(), nullable=True),
        sa.Column('resume_ref', sa.Text(), nullable=True),
        sa.Column('source', sa.String(length=50), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['job_id'], ['job_postings.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_id', 'candidate_id', name='uq_job_applications_candidate')
    )
    op.create_index('ix_job_applications_job_id', 'job_applications', ['job_id'], unique=False)
    op.create_index('ix_job_applications_candidate_id', 'job_applications', ['candidate_id'], unique=False)
    op.create_index('ix_job_applications_company_id', 'job_applications', ['company_id'], unique=False)
    op.create_index('ix_job_applications_status', 'job_applications', ['status'], unique=False)

    op.create_table(
        'application_status_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('application_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=30), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('actor_id', sa.String(length=255), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['application_id'], ['job_applications.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_application_status_history_application_id', 'application_status_history', ['application_id'], unique=False)

    op.create_table(
        'interviews',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('application_id', sa.Integer(), nullable=False),
        sa.Column('interviewer_id', sa.String(length=255), nullable=False),
        sa.Column('participants', sa.JSON(), nullable=True),
        sa.Column('interview_type', sa.String(length=20), nullable=False),
        sa.Column('scheduled_at', sa.DateTime(), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('ends_at', sa.DateTime(), nullable=False),
        sa.Column('original_scheduled_at', sa.DateTime(), nullable=False),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('meeting_link', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('reschedule_reason', sa.Text(), nullable=True),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('decision', sa.String(length=20), nullable=True),
        sa.Column('completed_by', sa.String(length=255), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('cancel_reason', sa.Text(), nullable=True),
        sa.Column('cancelled_by', sa.String(length=255), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['application_id'], ['job_applications.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_interviews_application_id', 'interviews', ['application_id'], unique=False)
    op.create_index('ix_interviews_status', 'interviews', ['status'], unique=False)
    op.create_index('ix_interviews_interviewer_window', 'interviews', ['interviewer_id', 'scheduled_at', 'ends_at'], unique=False)
    # At most one active interview per application
    op.create_index(
        'uq_interviews_active_application',
        'interviews',
        ['application_id'],
        unique=True,
        postgresql_where=ACTIVE_INTERVIEW,
        sqlite_where=ACTIVE_INTERVIEW,
    )

    op.create_table(
        'interviewer_schedule_locks',
        sa.Column('interviewer_id', sa.String(length=255), nullable=False),
        sa.Column('acquired_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('interviewer_id')
    )

    op.create_table(
        'application_notes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('application_id', sa.Integer(), nullable=False),
        sa.Column('author_id', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('visibility', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['application_id'], ['job_applications.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_application_notes_application_id', 'application_notes', ['application_id'], unique=False)
    op.create_index('ix_application_notes_author_id', 'application_notes', ['author_id'], unique=False)

    op.create_table(
        'application_flags',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('application_id', sa.Integer(), nullable=False),
        sa.Column('actor_id', sa.String(length=255), nullable=False),
        sa.Column('flag_type', sa.String(length=20), nullable=False),
        sa.Column('value', sa.Boolean(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['application_id'], ['job_applications.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('application_id', 'actor_id', 'flag_type', name='uq_application_flags_key')
    )
    op.create_index('ix_application_flags_application_id', 'application_flags', ['application_id'], unique=False)
    op.create_index('ix_application_flags_actor_id', 'application_flags', ['actor_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_application_flags_actor_id', table_name='application_flags')
    op.drop_index('ix_application_flags_application_id', table_name='application_flags')
    op.drop_table('application_flags')
    op.drop_index('ix_application_notes_author_id', table_name='application_notes')
    op.drop_index('ix_application_notes_application_id', table_name='application_notes')
    op.drop_table('application_notes')
    op.drop_table('interviewer_schedule_locks')
    op.drop_index('uq_interviews_active_application', table_name='interviews')
    op.drop_index('ix_interviews_interviewer_window', table_name='interviews')
    op.drop_index('ix_interviews_status', table_name='interviews')
    op.drop_index('ix_interviews_application_id', table_name='interviews')
    op.drop_table('interviews')
    op.drop_index('ix_application_status_history_application_id', table_name='application_status_history')
    op.drop_table('application_status_history')
    op.drop_index('ix_job_applications_status', table_name='job_applications')
    op.drop_index('ix_job_applications_company_id', table_name='job_applications')
    op.drop_index('ix_job_applications_candidate_id', table_name='job_applications')
    op.drop_index('ix_job_applications_job_id', table_name='job_applications')
    op.drop_table('job_applications')
    op.drop_index('ix_company_members_actor_id', table_name='company_members')
    op.drop_index('ix_company_members_company_id', table_name='company_members')
    op.drop_table('company_members')
    op.drop_index('ix_job_postings_company_id', table_name='job_postings')
    op.drop_table('job_postings')
