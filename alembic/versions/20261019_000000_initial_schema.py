"""Initial database schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates every table of the organization-scoped store.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def json_column():
    return sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def organization_fk():
    return sa.Column(
        'organization_id', sa.String(36), sa.ForeignKey('organizations.id'), nullable=False
    )


def upgrade() -> None:
    """Create all tables."""

    # =========================================================================
    # Organizations / Users
    # =========================================================================
    op.create_table(
        'organizations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('billing_package', sa.String(50), nullable=True),
        sa.Column('per_call_rate', sa.Numeric(10, 4), nullable=True),
        sa.Column('per_minute_rate', sa.Numeric(10, 4), nullable=True),
        sa.Column('custom_rate_enabled', sa.Boolean(), nullable=True),
        sa.Column('monthly_credits', sa.Integer(), nullable=True),
        sa.Column('used_credits', sa.Integer(), nullable=True),
        sa.Column('credit_reset_date', sa.DateTime(), nullable=True),
        sa.Column('max_agents', sa.Integer(), nullable=True),
        sa.Column('max_users', sa.Integer(), nullable=True),
        sa.Column('stripe_customer_id', sa.String(100), nullable=True),
        sa.Column('subscription_id', sa.String(100), nullable=True),
        sa.Column('billing_status', sa.String(20), nullable=True),
        sa.Column('last_payment_date', sa.DateTime(), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        organization_fk(),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('profile_image_url', sa.String(500), nullable=True),
        sa.Column('role', sa.String(20), nullable=True),
        sa.Column('is_admin', sa.Boolean(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_users_organization_id', 'users', ['organization_id'])

    # =========================================================================
    # Billing
    # =========================================================================
    op.create_table(
        'billing_packages',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(50), unique=True, nullable=False),
        sa.Column('display_name', sa.String(100), nullable=False),
        sa.Column('per_call_rate', sa.Numeric(10, 4), nullable=False),
        sa.Column('per_minute_rate', sa.Numeric(10, 4), nullable=False),
        sa.Column('monthly_credits', sa.Integer(), nullable=False),
        sa.Column('max_agents', sa.Integer(), nullable=False),
        sa.Column('max_users', sa.Integer(), nullable=False),
        sa.Column('features', json_column(), nullable=True),
        sa.Column('monthly_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('yearly_price', sa.Numeric(10, 2), nullable=True),
        sa.Column('stripe_product_id', sa.String(100), nullable=True),
        sa.Column('stripe_price_id', sa.String(100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.String(36), primary_key=True),
        organization_fk(),
        sa.Column(
            'package_id',
            sa.String(36),
            sa.ForeignKey('billing_packages.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=True),
        sa.Column('status', sa.String(20), nullable=True),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('transaction_id', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('failed_at', sa.DateTime(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_payments_organization_id', 'payments', ['organization_id'])
    op.create_index('ix_payments_org_created', 'payments', ['organization_id', 'created_at'])

    # =========================================================================
    # Integrations / Review
    # =========================================================================
    op.create_table(
        'integrations',
        sa.Column('id', sa.String(36), primary_key=True),
        organization_fk(),
        sa.Column('provider', sa.String(50), nullable=False),
        # Ciphertext, see EncryptedString
        sa.Column('api_key', sa.String(512), nullable=False),
        sa.Column('status', sa.String(20), nullable=True),
        sa.Column('last_tested', sa.DateTime(), nullable=True),
        *timestamps(),
        sa.UniqueConstraint('organization_id', 'provider', name='uq_integrations_org_provider'),
    )
    op.create_index('ix_integrations_organization_id', 'integrations', ['organization_id'])

    op.create_table(
        'admin_tasks',
        sa.Column('id', sa.String(36), primary_key=True),
        organization_fk(),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('status', sa.String(20), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('related_entity_id', sa.String(36), nullable=False),
        sa.Column('related_entity_type', sa.String(50), nullable=False),
        sa.Column('requested_by', sa.String(36), nullable=True),
        sa.Column('approved_by', sa.String(36), nullable=True),
        sa.Column('rejected_by', sa.String(36), nullable=True),
        sa.Column('metadata_json', json_column(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_admin_tasks_status', 'admin_tasks', ['status'])
    op.create_index(
        'ix_admin_tasks_related_entity',
        'admin_tasks',
        ['related_entity_type', 'related_entity_id'],
    )

    op.create_table(
        'rag_configurations',
        sa.Column('id', sa.String(36), primary_key=True),
        organization_fk(),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('webhook_url', sa.String(500), nullable=True),
        sa.Column('system_prompt', sa.Text(), nullable=True),
        sa.Column('configuration', json_column(), nullable=True),
        sa.Column('approval_status', sa.String(20), nullable=True),
        sa.Column('approved_by', sa.String(36), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('first_saved_at', sa.DateTime(), nullable=True),
        *timestamps(),
    )
    op.create_index(
        'ix_rag_configurations_organization_id', 'rag_configurations', ['organization_id']
    )

    # =========================================================================
    # Telephony
    # =========================================================================
    op.create_table(
        'phone_numbers',
        sa.Column('id', sa.String(36), primary_key=True),
        organization_fk(),
        sa.Column('label', sa.String(100), nullable=False),
        sa.Column('phone_number', sa.String(50), nullable=False),
        sa.Column('country_code', sa.String(10), nullable=True),
        sa.Column('provider', sa.String(20), nullable=False),
        sa.Column('twilio_account_sid', sa.String(100), nullable=True),
        sa.Column('twilio_auth_token', sa.String(255), nullable=True),
        sa.Column('sip_trunk_uri', sa.String(500), nullable=True),
        sa.Column('sip_username', sa.String(100), nullable=True),
        sa.Column('sip_password', sa.String(255), nullable=True),
        sa.Column('external_phone_id', sa.String(100), nullable=True),
        sa.Column('agent_id', sa.String(36), nullable=True),
        sa.Column('external_agent_id', sa.String(100), nullable=True),
        sa.Column('status', sa.String(20), nullable=True),
        sa.Column('last_synced', sa.DateTime(), nullable=True),
        sa.Column('metadata_json', json_column(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_phone_numbers_organization_id', 'phone_numbers', ['organization_id'])
    op.create_index('ix_phone_numbers_agent_id', 'phone_numbers', ['agent_id'])

    # =========================================================================
    # Agents
    # =========================================================================
    op.create_table(
        'agents',
        sa.Column('id', sa.String(36), primary_key=True),
        organization_fk(),
        sa.Column('external_agent_id', sa.String(100), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('first_message', sa.Text(), nullable=True),
        sa.Column('system_prompt', sa.Text(), nullable=True),
        sa.Column('language', sa.String(10), nullable=True),
        sa.Column('voice_id', sa.String(100), nullable=True),
        sa.Column('voice_settings', json_column(), nullable=False),
        sa.Column('llm_settings', json_column(), nullable=False),
        sa.Column('tools', json_column(), nullable=False),
        sa.Column('dynamic_variables', json_column(), nullable=True),
        sa.Column('evaluation_criteria', json_column(), nullable=False),
        sa.Column('data_collection', json_column(), nullable=False),
        sa.Column('prompt_templates', json_column(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_agents_organization_id', 'agents', ['organization_id'])
    op.create_index('ix_agents_external_agent_id', 'agents', ['external_agent_id'])

    # =========================================================================
    # Call Logs
    # =========================================================================
    op.create_table(
        'call_logs',
        sa.Column('id', sa.String(36), primary_key=True),
        organization_fk(),
        sa.Column('agent_id', sa.String(36), nullable=True),
        sa.Column('conversation_id', sa.String(100), nullable=True),
        sa.Column('external_call_id', sa.String(100), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('transcript', json_column(), nullable=True),
        sa.Column('audio_url', sa.String(500), nullable=True),
        sa.Column('cost', sa.Numeric(10, 4), nullable=True),
        sa.Column('status', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_call_logs_organization_id', 'call_logs', ['organization_id'])
    op.create_index('ix_call_logs_agent_id', 'call_logs', ['agent_id'])
    op.create_index('ix_call_logs_external_call_id', 'call_logs', ['external_call_id'])
    op.create_index('ix_call_logs_org_created', 'call_logs', ['organization_id', 'created_at'])

    # =========================================================================
    # Batch Calls
    # =========================================================================
    op.create_table(
        'batch_calls',
        sa.Column('id', sa.String(36), primary_key=True),
        organization_fk(),
        sa.Column('user_id', sa.String(36), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('agent_id', sa.String(36), nullable=False),
        sa.Column('phone_number_id', sa.String(36), nullable=True),
        sa.Column('external_batch_id', sa.String(100), nullable=True),
        sa.Column('status', sa.String(20), nullable=True),
        sa.Column('total_recipients', sa.Integer(), nullable=True),
        sa.Column('completed_calls', sa.Integer(), nullable=True),
        sa.Column('failed_calls', sa.Integer(), nullable=True),
        sa.Column('estimated_cost', sa.Numeric(10, 4), nullable=True),
        sa.Column('actual_cost', sa.Numeric(10, 4), nullable=True),
        sa.Column('metadata_json', json_column(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        *timestamps(),
    )
    op.create_index('ix_batch_calls_organization_id', 'batch_calls', ['organization_id'])
    op.create_index('ix_batch_calls_status', 'batch_calls', ['status'])

    op.create_table(
        'batch_call_recipients',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'batch_call_id',
            sa.String(36),
            sa.ForeignKey('batch_calls.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('phone_number', sa.String(50), nullable=False),
        sa.Column('status', sa.String(20), nullable=True),
        sa.Column('variables', json_column(), nullable=True),
        sa.Column('call_duration', sa.Integer(), nullable=True),
        sa.Column('call_cost', sa.Numeric(10, 4), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('conversation_id', sa.String(100), nullable=True),
        sa.Column('called_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        *timestamps(),
    )
    op.create_index(
        'ix_batch_call_recipients_batch_call_id', 'batch_call_recipients', ['batch_call_id']
    )
    op.create_index('ix_batch_call_recipients_status', 'batch_call_recipients', ['status'])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table('batch_call_recipients')
    op.drop_table('batch_calls')
    op.drop_table('call_logs')
    op.drop_table('agents')
    op.drop_table('phone_numbers')
    op.drop_table('rag_configurations')
    op.drop_table('admin_tasks')
    op.drop_table('integrations')
    op.drop_table('payments')
    op.drop_table('billing_packages')
    op.drop_table('users')
    op.drop_table('organizations')
