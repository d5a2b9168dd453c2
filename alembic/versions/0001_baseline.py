"""Baseline migration - tenants, users, forms, items, documents

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-18

Creates every table of the insurance request portal. Written with
op.create_table so it runs on both PostgreSQL and SQLite.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create portal tables."""

    # ==========================================================================
    # Organizations
    # ==========================================================================
    op.create_table(
        'organizations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ==========================================================================
    # Users (admins by email, clients by full name + date of birth)
    # ==========================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('organization_id', sa.Uuid(), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(320), nullable=True, unique=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('token_version', sa.Integer(), server_default=sa.text('1'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('full_name', 'date_of_birth', name='uq_users_full_name_dob'),
    )
    op.create_index('ix_users_organization_id', 'users', ['organization_id'])

    # ==========================================================================
    # Forms
    # ==========================================================================
    op.create_table(
        'forms',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('organization_id', sa.Uuid(), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_by_user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('client_name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('status', sa.String(20), server_default=sa.text("'Draft'"), nullable=False),
        sa.Column('version', sa.Integer(), server_default=sa.text('1'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_forms_org_updated', 'forms', ['organization_id', 'updated_at'])
    op.create_index('ix_forms_created_by', 'forms', ['created_by_user_id'])
    op.create_index('ix_forms_deleted_at', 'forms', ['deleted_at'])

    # ==========================================================================
    # Insurance items and documents
    # ==========================================================================
    op.create_table(
        'insurance_items',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('form_id', sa.Uuid(), sa.ForeignKey('forms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('insurance_type', sa.String(100), nullable=False),
        sa.Column('package', sa.String(50), nullable=False),
        sa.Column('request_type', sa.String(50), nullable=False),
        sa.Column('current_policy_number', sa.String(100), nullable=True),
        sa.Column('effective_date', sa.Date(), nullable=True),
        sa.Column('duration', sa.String(50), nullable=True),
        sa.Column('price', sa.String(32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_insurance_items_form_id', 'insurance_items', ['form_id'])

    op.create_table(
        'documents',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('item_id', sa.Uuid(), sa.ForeignKey('insurance_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('file_url', sa.String(500), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_documents_item_id', 'documents', ['item_id'])


def downgrade() -> None:
    """Drop portal tables."""
    op.drop_table('documents')
    op.drop_table('insurance_items')
    op.drop_table('forms')
    op.drop_table('users')
    op.drop_table('organizations')
