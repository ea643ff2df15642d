"""Create negotiation and calendar schema

Revision ID: 3f7c1a9e2b40
Revises:
Create Date: 2026-10-17

Tables:
- accounts: Directory of law firms, medical providers and individuals
- provider_connections: Provider-individual relationships (connection gate)
- event_requests: One negotiation thread per row
- event_request_proposed_dates: Candidate windows of a negotiation
- calendar_events: Per-owner appointments materialized on confirmation
- shared_calendar_events: Read-only visibility grants

event_requests.confirmed_event_id and calendar_events.event_request_id
reference each other, so the former is added after both tables exist.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from case_scheduler.models.base import GUID


# revision identifiers, used by Alembic.
revision: str = '3f7c1a9e2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column('id', GUID(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table('accounts',
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('display_name', sa.String(length=200), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        *_base_columns(),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('accounts', schema=None) as batch_op:
        batch_op.create_index('idx_account_role', ['role'], unique=False)

    op.create_table('provider_connections',
        sa.Column('provider_kind', sa.String(length=50), nullable=False),
        sa.Column('provider_id', GUID(), nullable=False),
        sa.Column('individual_id', GUID(), nullable=False),
        sa.Column('status', sa.String(length=50), nullable=False),
        *_base_columns(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('provider_kind', 'provider_id', 'individual_id', name='uq_provider_connection')
    )
    with op.batch_alter_table('provider_connections', schema=None) as batch_op:
        batch_op.create_index('idx_connection_individual', ['individual_id', 'status'], unique=False)
        batch_op.create_index('idx_connection_provider', ['provider_id', 'status'], unique=False)

    op.create_table('event_requests',
        sa.Column('law_firm_id', GUID(), nullable=True),
        sa.Column('medical_provider_id', GUID(), nullable=True),
        sa.Column('client_id', GUID(), nullable=True),
        sa.Column('patient_id', GUID(), nullable=True),
        sa.Column('event_type', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('confirmed_event_id', GUID(), nullable=True),
        *_base_columns(),
        sa.CheckConstraint('(law_firm_id IS NULL) <> (medical_provider_id IS NULL)',
                           name='ck_event_request_one_requester'),
        sa.CheckConstraint('(client_id IS NULL) <> (patient_id IS NULL)',
                           name='ck_event_request_one_recipient'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('event_requests', schema=None) as batch_op:
        batch_op.create_index('idx_event_request_law_firm', ['law_firm_id', 'status'], unique=False)
        batch_op.create_index('idx_event_request_medical_provider', ['medical_provider_id', 'status'], unique=False)
        batch_op.create_index('idx_event_request_client', ['client_id', 'status'], unique=False)
        batch_op.create_index('idx_event_request_patient', ['patient_id', 'status'], unique=False)

    op.create_table('event_request_proposed_dates',
        sa.Column('event_request_id', GUID(), nullable=False),
        sa.Column('proposed_start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('proposed_end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('proposed_by', sa.String(length=50), nullable=True),
        sa.Column('is_selected', sa.Boolean(), nullable=False),
        *_base_columns(),
        sa.ForeignKeyConstraint(['event_request_id'], ['event_requests.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('event_request_proposed_dates', schema=None) as batch_op:
        batch_op.create_index('idx_proposed_date_request', ['event_request_id', 'proposed_start_time'], unique=False)

    op.create_table('calendar_events',
        sa.Column('law_firm_id', GUID(), nullable=True),
        sa.Column('medical_provider_id', GUID(), nullable=True),
        sa.Column('user_id', GUID(), nullable=True),
        sa.Column('event_type', sa.String(length=100), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('all_day', sa.Boolean(), nullable=False),
        sa.Column('reminder_enabled', sa.Boolean(), nullable=False),
        sa.Column('reminder_minutes_before', sa.Integer(), nullable=False),
        sa.Column('case_related', sa.Boolean(), nullable=False),
        sa.Column('created_by', GUID(), nullable=True),
        sa.Column('event_request_id', GUID(), nullable=True),
        *_base_columns(),
        sa.CheckConstraint(
            '(CASE WHEN law_firm_id IS NULL THEN 0 ELSE 1 END'
            ' + CASE WHEN medical_provider_id IS NULL THEN 0 ELSE 1 END'
            ' + CASE WHEN user_id IS NULL THEN 0 ELSE 1 END) = 1',
            name='ck_calendar_event_one_owner'),
        sa.ForeignKeyConstraint(['event_request_id'], ['event_requests.id']),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('calendar_events', schema=None) as batch_op:
        batch_op.create_index('idx_calendar_event_law_firm', ['law_firm_id', 'start_time'], unique=False)
        batch_op.create_index('idx_calendar_event_medical_provider', ['medical_provider_id', 'start_time'], unique=False)
        batch_op.create_index('idx_calendar_event_user', ['user_id', 'start_time'], unique=False)
        batch_op.create_index('idx_calendar_event_request', ['event_request_id'], unique=False)

    with op.batch_alter_table('event_requests', schema=None) as batch_op:
        batch_op.create_foreign_key(
            'fk_event_request_confirmed_event', 'calendar_events',
            ['confirmed_event_id'], ['id'],
        )

    op.create_table('shared_calendar_events',
        sa.Column('calendar_event_id', GUID(), nullable=False),
        sa.Column('shared_with_user_id', GUID(), nullable=True),
        sa.Column('shared_with_medical_provider_id', GUID(), nullable=True),
        sa.Column('shared_with_law_firm_id', GUID(), nullable=True),
        sa.Column('can_edit', sa.Boolean(), nullable=False),
        sa.Column('shared_by', GUID(), nullable=True),
        *_base_columns(),
        sa.CheckConstraint(
            '(CASE WHEN shared_with_user_id IS NULL THEN 0 ELSE 1 END'
            ' + CASE WHEN shared_with_medical_provider_id IS NULL THEN 0 ELSE 1 END'
            ' + CASE WHEN shared_with_law_firm_id IS NULL THEN 0 ELSE 1 END) = 1',
            name='ck_shared_calendar_event_one_grantee'),
        sa.ForeignKeyConstraint(['calendar_event_id'], ['calendar_events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('calendar_event_id', 'shared_with_user_id', name='uq_shared_event_user'),
        sa.UniqueConstraint('calendar_event_id', 'shared_with_medical_provider_id',
                            name='uq_shared_event_medical_provider'),
        sa.UniqueConstraint('calendar_event_id', 'shared_with_law_firm_id', name='uq_shared_event_law_firm')
    )
    with op.batch_alter_table('shared_calendar_events', schema=None) as batch_op:
        batch_op.create_index('idx_shared_event_event', ['calendar_event_id'], unique=False)


def downgrade() -> None:
    with op.batch_alter_table('shared_calendar_events', schema=None) as batch_op:
        batch_op.drop_index('idx_shared_event_event')
    op.drop_table('shared_calendar_events')

    with op.batch_alter_table('event_requests', schema=None) as batch_op:
        batch_op.drop_constraint('fk_event_request_confirmed_event', type_='foreignkey')

    with op.batch_alter_table('calendar_events', schema=None) as batch_op:
        batch_op.drop_index('idx_calendar_event_request')
        batch_op.drop_index('idx_calendar_event_user')
        batch_op.drop_index('idx_calendar_event_medical_provider')
        batch_op.drop_index('idx_calendar_event_law_firm')
    op.drop_table('calendar_events')

    with op.batch_alter_table('event_request_proposed_dates', schema=None) as batch_op:
        batch_op.drop_index('idx_proposed_date_request')
    op.drop_table('event_request_proposed_dates')

    with op.batch_alter_table('event_requests', schema=None) as batch_op:
        batch_op.drop_index('idx_event_request_patient')
        batch_op.drop_index('idx_event_request_client')
        batch_op.drop_index('idx_event_request_medical_provider')
        batch_op.drop_index('idx_event_request_law_firm')
    op.drop_table('event_requests')

    with op.batch_alter_table('provider_connections', schema=None) as batch_op:
        batch_op.drop_index('idx_connection_provider')
        batch_op.drop_index('idx_connection_individual')
    op.drop_table('provider_connections')

    with op.batch_alter_table('accounts', schema=None) as batch_op:
        batch_op.drop_index('idx_account_role')
    op.drop_table('accounts')
