"""Create interview lifecycle tables

Revision ID: 001_create_interview_tables
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_create_interview_tables'
down_revision = None
branch_labels = None
depends_on = None


ACTIVE_PREDICATE = sa.text("status IN ('pending', 'scheduled', 'ready', 'in_progress')")


def upgrade() -> None:
    """Create jobs, candidates, activities, interviews, questions and outbox."""
    op.create_table(
        'jobs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('company_name', sa.String(length=255), nullable=True),
        sa.Column('level', sa.String(length=50), nullable=False, server_default='mid'),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('required_skills', sa.JSON(), nullable=False),
        sa.Column('nice_to_have_skills', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'candidates',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('stage', sa.String(length=32), nullable=False, server_default='applied'),
        sa.Column('github_url', sa.String(length=500), nullable=True),
        sa.Column('linkedin_url', sa.String(length=500), nullable=True),
        sa.Column('resume_text', sa.Text(), nullable=True),
        sa.Column('extracted_skills', sa.JSON(), nullable=False),
        sa.Column('ai_score', sa.Integer(), nullable=True),
        sa.Column('ai_summary', sa.Text(), nullable=True),
        sa.Column('ai_strengths', sa.JSON(), nullable=True),
        sa.Column('ai_concerns', sa.JSON(), nullable=True),
        sa.Column('ai_score_breakdown', sa.JSON(), nullable=True),
        sa.Column('last_activity_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_candidates_email', 'candidates', ['email'])

    op.create_table(
        'candidate_activities',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('candidate_id', sa.String(length=36), nullable=False),
        sa.Column('activity_type', sa.String(length=64), nullable=False),
        sa.Column('old_value', sa.String(length=255), nullable=True),
        sa.Column('new_value', sa.String(length=255), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_internal', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['candidate_id'], ['candidates.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_candidate_activities_candidate_id', 'candidate_activities', ['candidate_id'])
    op.create_index('ix_candidate_activities_activity_type', 'candidate_activities', ['activity_type'])
    op.create_index(
        'idx_candidate_activities_candidate_created',
        'candidate_activities',
        ['candidate_id', 'created_at'],
    )

    op.create_table(
        'ai_interviews',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('candidate_id', sa.String(length=36), nullable=False),
        sa.Column('job_id', sa.String(length=36), nullable=False),
        sa.Column('access_token', sa.String(length=128), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reminder_sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration_minutes', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('total_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('questions_answered', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('interview_link', sa.String(length=1000), nullable=True),
        sa.Column('candidate_timezone', sa.String(length=64), nullable=True),
        sa.Column('custom_message', sa.Text(), nullable=True),
        sa.Column('model_used', sa.String(length=100), nullable=True),
        sa.Column('overall_score', sa.Integer(), nullable=True),
        sa.Column('recommendation', sa.String(length=32), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('strengths', sa.JSON(), nullable=False),
        sa.Column('concerns', sa.JSON(), nullable=False),
        sa.Column('defaulted_evaluations', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_by', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['candidate_id'], ['candidates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_ai_interviews_candidate_id', 'ai_interviews', ['candidate_id'])
    op.create_index('ix_ai_interviews_job_id', 'ai_interviews', ['job_id'])
    op.create_index('ix_ai_interviews_access_token', 'ai_interviews', ['access_token'], unique=True)
    op.create_index('idx_ai_interviews_status_scheduled', 'ai_interviews', ['status', 'scheduled_at'])
    op.create_index('idx_ai_interviews_status_expires', 'ai_interviews', ['status', 'expires_at'])
    op.create_index(
        'uq_ai_interviews_active_pair',
        'ai_interviews',
        ['candidate_id', 'job_id'],
        unique=True,
        postgresql_where=ACTIVE_PREDICATE,
        sqlite_where=ACTIVE_PREDICATE,
    )

    op.create_table(
        'interview_questions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('interview_id', sa.String(length=36), nullable=False),
        sa.Column('question_order', sa.Integer(), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_context', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('difficulty', sa.String(length=16), nullable=False),
        sa.Column('scoring_rubric', sa.JSON(), nullable=False),
        sa.Column('estimated_time_minutes', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('candidate_answer', sa.Text(), nullable=True),
        sa.Column('answered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('time_spent_seconds', sa.Integer(), nullable=True),
        sa.Column('ai_score', sa.Float(), nullable=True),
        sa.Column('ai_feedback', sa.Text(), nullable=True),
        sa.Column('ai_evaluation_breakdown', sa.JSON(), nullable=True),
        sa.Column('evaluation_status', sa.String(length=32), nullable=True),
        sa.ForeignKeyConstraint(['interview_id'], ['ai_interviews.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('interview_id', 'question_order', name='uq_interview_questions_order'),
    )
    op.create_index('ix_interview_questions_interview_id', 'interview_questions', ['interview_id'])

    op.create_table(
        'outbox_messages',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('topic', sa.String(length=64), nullable=False),
        sa.Column('dedupe_key', sa.String(length=255), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('available_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('dedupe_key', name='uq_outbox_messages_dedupe_key'),
    )
    op.create_index('idx_outbox_messages_status_available', 'outbox_messages', ['status', 'available_at'])


def downgrade() -> None:
    """Drop interview lifecycle tables."""
    op.drop_index('idx_outbox_messages_status_available', table_name='outbox_messages')
    op.drop_table('outbox_messages')
    op.drop_index('ix_interview_questions_interview_id', table_name='interview_questions')
    op.drop_table('interview_questions')
    op.drop_index('uq_ai_interviews_active_pair', table_name='ai_interviews')
    op.drop_index('idx_ai_interviews_status_expires', table_name='ai_interviews')
    op.drop_index('idx_ai_interviews_status_scheduled', table_name='ai_interviews')
    op.drop_index('ix_ai_interviews_access_token', table_name='ai_interviews')
    op.drop_index('ix_ai_interviews_job_id', table_name='ai_interviews')
    op.drop_index('ix_ai_interviews_candidate_id', table_name='ai_interviews')
    op.drop_table('ai_interviews')
    op.drop_index('idx_candidate_activities_candidate_created', table_name='candidate_activities')
    op.drop_index('ix_candidate_activities_activity_type', table_name='candidate_activities')
    op.drop_index('ix_candidate_activities_candidate_id', table_name='candidate_activities')
    op.drop_table('candidate_activities')
    op.drop_index('ix_candidates_email', table_name='candidates')
    op.drop_table('candidates')
    op.drop_table('jobs')
