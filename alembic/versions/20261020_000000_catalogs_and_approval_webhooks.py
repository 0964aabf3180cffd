"""Prompt catalogs and approval webhooks

Revision ID: 002_catalogs
Revises: 001_initial
Create Date: 2026-10-20 00:00:00.000000

Adds the system template and quick action button catalogs, and the
approval webhook registry.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '002_catalogs'
down_revision: Union[str, None] = '001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def json_column():
    return sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    """Create catalog and webhook tables."""
    op.create_table(
        'approval_webhooks',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('webhook_url', sa.String(500), nullable=False),
        sa.Column('secret', sa.String(432), nullable=True),
        sa.Column('events', json_column(), nullable=True),
        sa.Column('headers', json_column(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('last_triggered', sa.DateTime(), nullable=True),
        sa.Column('failure_count', sa.Integer(), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'system_templates',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('icon', sa.String(50), nullable=True),
        sa.Column('color', sa.String(255), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *timestamps(),
    )

    op.create_table(
        'quick_action_buttons',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'organization_id', sa.String(36), sa.ForeignKey('organizations.id'), nullable=True
        ),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('icon', sa.String(50), nullable=True),
        sa.Column('color', sa.String(255), nullable=True),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('sort_order', sa.Integer(), nullable=True),
        sa.Column('is_system', sa.Boolean(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        *timestamps(),
    )
    op.create_index(
        'ix_quick_action_buttons_organization_id', 'quick_action_buttons', ['organization_id']
    )


def downgrade() -> None:
    """Drop catalog and webhook tables."""
    op.drop_table('quick_action_buttons')
    op.drop_table('system_templates')
    op.drop_table('approval_webhooks')
