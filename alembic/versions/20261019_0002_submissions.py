"""submissions with one row per student and event plan

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:02:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = '20261019_0002'
down_revision = '20261019_0001'
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    tables = set(inspector.get_table_names())

    if 'submissions' not in tables:
        op.create_table(
            'submissions',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('student_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
            sa.Column('event_plan_id', sa.Integer(), sa.ForeignKey('event_plans.id'), nullable=False),
            sa.Column('submission_kind', sa.String(length=10), nullable=False),
            sa.Column('content', sa.Text(), nullable=True),
            sa.Column('file_url', sa.String(length=512), nullable=True),
            sa.Column('file_name', sa.String(length=255), nullable=True),
            sa.Column('file_size', sa.BigInteger(), nullable=True),
            sa.Column('status', sa.String(length=20), nullable=False, server_default='submitted'),
            sa.Column('submitted_at', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('student_id', 'event_plan_id', name='uq_submissions_student_event_plan'),
        )

    indexes = {idx['name'] for idx in inspect(bind).get_indexes('submissions')}
    if 'ix_submissions_id' not in indexes:
        op.create_index('ix_submissions_id', 'submissions', ['id'])
    if 'ix_submissions_student_id' not in indexes:
        op.create_index('ix_submissions_student_id', 'submissions', ['student_id'])
    if 'ix_submissions_event_plan_id' not in indexes:
        op.create_index('ix_submissions_event_plan_id', 'submissions', ['event_plan_id'])
    if 'ix_submissions_status' not in indexes:
        op.create_index('ix_submissions_status', 'submissions', ['status'])
    if 'ix_submissions_submitted_at' not in indexes:
        op.create_index('ix_submissions_submitted_at', 'submissions', ['submitted_at'])
    if 'ix_submissions_event_plan_status' not in indexes:
        op.create_index('ix_submissions_event_plan_status', 'submissions', ['event_plan_id', 'status'])

    uniques = {uc['name'] for uc in inspect(bind).get_unique_constraints('submissions')}
    if 'uq_submissions_student_event_plan' not in uniques:
        with op.batch_alter_table('submissions') as batch_op:
            batch_op.create_unique_constraint('uq_submissions_student_event_plan', ['student_id', 'event_plan_id'])


def downgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    if 'submissions' not in set(inspector.get_table_names()):
        return
    op.drop_table('submissions')
