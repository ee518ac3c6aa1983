"""brigades, users, events and event plans

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:01:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


revision = '20261019_0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    tables = set(inspector.get_table_names())

    if 'brigades' not in tables:
        op.create_table(
            'brigades',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=120), nullable=False, unique=True),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_brigades_id', 'brigades', ['id'])
        op.create_index('ix_brigades_is_active', 'brigades', ['is_active'])

    if 'users' not in tables:
        op.create_table(
            'users',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('email', sa.String(length=255), nullable=True),
            sa.Column('roll_number', sa.String(length=40), nullable=True),
            sa.Column('name', sa.String(length=160), nullable=False),
            sa.Column('role', sa.String(length=20), nullable=False, server_default='student'),
            sa.Column('password_hash', sa.String(length=255), nullable=False, server_default=''),
            sa.Column('brigade_id', sa.Integer(), sa.ForeignKey('brigades.id'), nullable=True),
            sa.Column('brigade_name', sa.String(length=120), nullable=False, server_default=''),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_at', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_users_id', 'users', ['id'])
        op.create_index('ix_users_email', 'users', ['email'], unique=True)
        op.create_index('ix_users_roll_number', 'users', ['roll_number'], unique=True)
        op.create_index('ix_users_role', 'users', ['role'])
        op.create_index('ix_users_brigade_id', 'users', ['brigade_id'])
        op.create_index('ix_users_role_active', 'users', ['role', 'is_active'])

    if 'events' not in tables:
        op.create_table(
            'events',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('name', sa.String(length=160), nullable=False),
            sa.Column('start_date', sa.Date(), nullable=False),
            sa.Column('end_date', sa.Date(), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_events_id', 'events', ['id'])
        op.create_index('ix_events_is_active', 'events', ['is_active'])

    if 'event_plans' not in tables:
        op.create_table(
            'event_plans',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('title', sa.String(length=160), nullable=False),
            sa.Column('description', sa.Text(), nullable=False, server_default=''),
            sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id'), nullable=True),
            sa.Column('plan_date', sa.Date(), nullable=False),
            sa.Column('start_time', sa.Time(), nullable=False),
            sa.Column('end_time', sa.Time(), nullable=True),
            sa.Column('requires_submission', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('submission_kind', sa.String(length=10), nullable=True),
            sa.Column('max_size_mib', sa.Integer(), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
        )
        op.create_index('ix_event_plans_id', 'event_plans', ['id'])
        op.create_index('ix_event_plans_event_id', 'event_plans', ['event_id'])
        op.create_index('ix_event_plans_plan_date', 'event_plans', ['plan_date'])
        op.create_index('ix_event_plans_requires_submission', 'event_plans', ['requires_submission'])
        op.create_index('ix_event_plans_is_active', 'event_plans', ['is_active'])
        op.create_index('ix_event_plans_date_start_time', 'event_plans', ['plan_date', 'start_time'])


def downgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    tables = set(inspector.get_table_names())
    for table in ('event_plans', 'events', 'users', 'brigades'):
        if table in tables:
            op.drop_table(table)
