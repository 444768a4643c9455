"""baseline CRM schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', UUID(as_uuid=True), primary_key=True)


def _org(nullable=False, ondelete='CASCADE'):
    return sa.Column(
        'organization_id', UUID(as_uuid=True),
        sa.ForeignKey('organizations.id', ondelete=ondelete), nullable=nullable,
    )


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        'organizations',
        _id(),
        sa.Column('name', sa.String(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'roles',
        _id(),
        _org(nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('permissions', JSONB(), nullable=False, server_default='[]'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_roles_organization_id', 'roles', ['organization_id'])

    op.create_table(
        'profiles',
        _id(),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('organization_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id'), nullable=True),
        sa.Column('role_id', UUID(as_uuid=True), sa.ForeignKey('roles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('is_platform_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_profiles_email', 'profiles', ['email'], unique=True)
    op.create_index('ix_profiles_organization_id', 'profiles', ['organization_id'])

    op.create_table(
        'pipelines',
        _id(),
        _org(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_pipelines_organization_id', 'pipelines', ['organization_id'])

    op.create_table(
        'pipeline_stages',
        _id(),
        sa.Column('pipeline_id', UUID(as_uuid=True), sa.ForeignKey('pipelines.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('color', sa.String(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_pipeline_stages_pipeline_id', 'pipeline_stages', ['pipeline_id'])

    op.create_table(
        'projects',
        _id(),
        _org(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('project_type', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='active'),
        sa.Column('total_units', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('available_units', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reserved_units', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sold_units', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by', UUID(as_uuid=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_projects_organization_id', 'projects', ['organization_id'])

    op.create_table(
        'properties',
        _id(),
        _org(),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('property_type', sa.String(50), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='available'),
        sa.Column('price', sa.Numeric(14, 2), nullable=True),
        sa.Column('show_in_crm', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('ix_properties_organization_id', 'properties', ['organization_id'])
    op.create_index('ix_properties_project_id', 'properties', ['project_id'])
    op.create_index('ix_properties_status', 'properties', ['status'])

    op.create_table(
        'leads',
        _id(),
        _org(),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='SET NULL'), nullable=True),
        sa.Column('stage_id', UUID(as_uuid=True), sa.ForeignKey('pipeline_stages.id', ondelete='SET NULL'), nullable=True),
        sa.Column('property_id', UUID(as_uuid=True), sa.ForeignKey('properties.id', ondelete='SET NULL'), nullable=True),
        sa.Column('assigned_to', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='new'),
        sa.Column('call_status', sa.String(20), nullable=True),
        sa.Column('transferred_to_human', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_contacted_at', sa.DateTime(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('raw_data', JSONB(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_leads_organization_id', 'leads', ['organization_id'])
    op.create_index('ix_leads_project_id', 'leads', ['project_id'])
    op.create_index('ix_leads_property_id', 'leads', ['property_id'])
    op.create_index('ix_leads_assigned_to', 'leads', ['assigned_to'])
    op.create_index('ix_leads_status', 'leads', ['status'])

    op.create_table(
        'campaigns',
        _id(),
        _org(),
        sa.Column('project_id', UUID(as_uuid=True), sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='draft'),
        sa.Column('ai_script', sa.Text(), nullable=True),
        sa.Column('total_calls', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('transferred_calls', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('time_start', sa.String(), nullable=True),
        sa.Column('time_end', sa.String(), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_campaigns_organization_id', 'campaigns', ['organization_id'])
    op.create_index('ix_campaigns_project_id', 'campaigns', ['project_id'])

    op.create_table(
        'call_logs',
        _id(),
        _org(nullable=True),
        sa.Column('campaign_id', UUID(as_uuid=True), sa.ForeignKey('campaigns.id', ondelete='CASCADE'), nullable=True),
        sa.Column('lead_id', UUID(as_uuid=True), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=True),
        sa.Column('call_sid', sa.String(), nullable=True),
        sa.Column('call_status', sa.String(), nullable=False, server_default='called'),
        sa.Column('transferred', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('direction', sa.String(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('recording_url', sa.String(), nullable=True),
        sa.Column('transcript', sa.Text(), nullable=True),
        sa.Column('metadata', JSONB(), nullable=True),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_call_logs_call_sid', 'call_logs', ['call_sid'], unique=True)
    op.create_index('ix_call_logs_organization_id', 'call_logs', ['organization_id'])
    op.create_index('ix_call_logs_campaign_id', 'call_logs', ['campaign_id'])
    op.create_index('ix_call_logs_lead_id', 'call_logs', ['lead_id'])
    op.create_index('ix_call_logs_created_at', 'call_logs', ['created_at'])

    op.create_table(
        'deals',
        _id(),
        _org(),
        sa.Column('lead_id', UUID(as_uuid=True), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=False),
        sa.Column('property_id', UUID(as_uuid=True), sa.ForeignKey('properties.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='open'),
        sa.Column('created_by', UUID(as_uuid=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_deals_organization_id', 'deals', ['organization_id'])
    op.create_index('ix_deals_lead_id', 'deals', ['lead_id'])

    op.create_table(
        'audit_logs',
        _id(),
        _org(nullable=True),
        sa.Column('user_id', UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True),
        sa.Column('user_name', sa.String(), nullable=True),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('entity_type', sa.String(), nullable=True),
        sa.Column('entity_id', sa.String(), nullable=True),
        sa.Column('details', JSONB(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_audit_logs_organization_id', 'audit_logs', ['organization_id'])
    op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'])

    op.create_table(
        'payment_transactions',
        _id(),
        _org(nullable=True, ondelete='SET NULL'),
        sa.Column('gateway_payment_id', sa.String(), nullable=False),
        sa.Column('invoice_id', sa.String(), nullable=True),
        sa.Column('amount', sa.Numeric(14, 2), nullable=True),
        sa.Column('currency', sa.String(3), nullable=False, server_default='INR'),
        sa.Column('status', sa.String(), nullable=False, server_default='created'),
        sa.Column('details', JSONB(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_payment_transactions_gateway_payment_id', 'payment_transactions', ['gateway_payment_id'], unique=True)

    op.create_table(
        'webhook_retries',
        _id(),
        sa.Column('service', sa.String(), nullable=False),
        sa.Column('payload', JSONB(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        *_timestamps(),
    )
    op.create_index('ix_webhook_retries_service', 'webhook_retries', ['service'])
    op.create_index('ix_webhook_retries_status', 'webhook_retries', ['status'])
    op.create_index('ix_webhook_retries_created_at', 'webhook_retries', ['created_at'])


def downgrade() -> None:
    for table in (
        'webhook_retries',
        'payment_transactions',
        'audit_logs',
        'deals',
        'call_logs',
        'campaigns',
        'leads',
        'properties',
        'projects',
        'pipeline_stages',
        'pipelines',
        'profiles',
        'roles',
        'organizations',
    ):
        op.drop_table(table)
