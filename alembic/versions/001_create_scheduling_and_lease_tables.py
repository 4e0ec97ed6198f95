"""create scheduling, lease template and signing tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'provider_availability',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), nullable=False, unique=True, index=True),
        sa.Column('weekly_schedule', sa.JSON(), nullable=False),
        sa.Column('buffer_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_notice_hours', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_advance_days', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('blocked_dates', sa.JSON(), nullable=False),
        sa.Column('timezone', sa.String(), nullable=False, server_default='America/New_York'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'appointments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column('customer_id', postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column('job_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('service_type', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('address', sa.JSON(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False, index=True),
        sa.Column('end_time', sa.DateTime(), nullable=False, index=True),
        sa.Column('status', sa.Enum('CONFIRMED', 'CANCELLED', 'COMPLETED', name='appointmentstatus'), nullable=False, index=True),
        sa.Column('deposit_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_by', sa.Enum('PROVIDER', 'CUSTOMER', name='cancelledby'), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'lease_templates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('landlord_id', postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('type', sa.Enum('BUILDER', 'UPLOADED_PDF', name='lease_template_type'), nullable=False),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('builder_config', sa.JSON(), nullable=True),
        sa.Column('pdf_url', sa.String(), nullable=True),
        sa.Column('signature_fields', sa.JSON(), nullable=True),
        sa.Column('merge_fields', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    # At most one default template per landlord
    op.create_index(
        'uq_lease_templates_landlord_default',
        'lease_templates',
        ['landlord_id'],
        unique=True,
        postgresql_where=sa.text('is_default'),
    )

    op.create_table(
        'property_lease_templates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('property_id', postgresql.UUID(as_uuid=True), nullable=False, unique=True, index=True),
        sa.Column('lease_template_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('lease_templates.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'lease_documents',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('lease_id', postgresql.UUID(as_uuid=True), nullable=False, unique=True, index=True),
        sa.Column('lease_template_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('source_pdf_url', sa.String(), nullable=False),
        sa.Column('current_pdf_url', sa.String(), nullable=False),
        sa.Column('signature_fields', sa.JSON(), nullable=True),
        sa.Column('signing_round', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'signing_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('lease_document_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('lease_documents.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('lease_id', postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column('role', sa.Enum('TENANT', 'LANDLORD', name='signing_role'), nullable=False),
        sa.Column('signing_round', sa.Integer(), nullable=False),
        sa.Column('signer_name', sa.String(), nullable=False),
        sa.Column('signer_email', sa.String(), nullable=False),
        sa.Column('signer_ip', sa.String(), nullable=True),
        sa.Column('signer_user_agent', sa.String(), nullable=True),
        sa.Column('signed_at', sa.DateTime(), nullable=False),
        sa.Column('signed_pdf_url', sa.String(), nullable=False),
        sa.Column('audit_log_url', sa.String(), nullable=False),
        sa.Column('document_hash', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('signing_records')
    op.drop_table('lease_documents')
    op.drop_table('property_lease_templates')
    op.drop_index('uq_lease_templates_landlord_default', table_name='lease_templates')
    op.drop_table('lease_templates')
    op.drop_table('appointments')
    op.drop_table('provider_availability')
    op.execute('DROP TYPE IF EXISTS signing_role')
    op.execute('DROP TYPE IF EXISTS lease_template_type')
    op.execute('DROP TYPE IF EXISTS cancelledby')
    op.execute('DROP TYPE IF EXISTS appointmentstatus')
