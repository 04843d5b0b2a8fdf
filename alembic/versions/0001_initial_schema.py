"""Initial schema: users, templates, documents, results.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17

Creates the four tables and seeds the public system templates.
"""
import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


PUBLIC_TEMPLATES = [
    {
        'name': 'Invoice',
        'description': 'Vendor, invoice number, dates, line items, taxes and totals.',
        'level_of_details': 'detailed',
        'json_schema': {
            'type': 'object',
            'properties': {
                'vendor_name': {'type': 'string'},
                'invoice_number': {'type': 'string'},
                'invoice_date': {'type': 'string'},
                'due_date': {'type': 'string'},
                'line_items': {'type': 'array'},
                'tax': {'type': 'number'},
                'total': {'type': 'number'},
            },
        },
        'message_template': 'Invoice {invoice_number} from {vendor_name} totals {total}.',
    },
    {
        'name': 'Receipt',
        'description': 'Merchant, purchase date, items and amount paid.',
        'level_of_details': 'summary',
        'json_schema': {
            'type': 'object',
            'properties': {
                'merchant': {'type': 'string'},
                'date': {'type': 'string'},
                'items': {'type': 'array'},
                'total': {'type': 'number'},
            },
        },
        'message_template': 'Receipt from {merchant} on {date} for {total}.',
    },
    {
        'name': 'General Document',
        'description': 'Title, summary and key facts of any document.',
        'level_of_details': 'summary',
        'json_schema': {
            'type': 'object',
            'properties': {
                'title': {'type': 'string'},
                'summary': {'type': 'string'},
                'key_points': {'type': 'array', 'items': {'type': 'string'}},
            },
        },
        'message_template': None,
    },
]


def upgrade() -> None:
    """Create tables and seed public templates."""
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('supabase_user_id', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('supabase_user_id', name='uq_users_supabase_user_id'),
    )

    templates = op.create_table(
        'templates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('json_schema', postgresql.JSONB(), nullable=True),
        sa.Column('message_template', sa.Text(), nullable=True),
        sa.Column('level_of_details', sa.String(100), nullable=True),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('created_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True,
                  comment='NULL for system templates'),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_templates_visibility', 'templates', ['is_public', 'created_by'])

    op.create_table(
        'documents',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('filename', sa.String(), nullable=False),
        sa.Column('file_path', sa.String(), nullable=False),
        sa.Column('upload_date', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('template_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('templates.id'), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='processing'),
        sa.Column('processing_started_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('processing_completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "status IN ('processing', 'completed', 'failed')", name='ck_documents_status'
        ),
    )
    op.create_index('ix_documents_user_created', 'documents', ['user_id', 'created_at'])

    op.create_table(
        'results',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('document_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('documents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('extracted_json', postgresql.JSONB(), nullable=True),
        sa.Column('generated_message', sa.Text(), nullable=True),
        sa.Column('raw_text', sa.Text(), nullable=True),
        sa.Column('confidence', sa.Float(), nullable=True),
        sa.Column('warnings', postgresql.JSONB(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            'confidence IS NULL OR (confidence >= 0 AND confidence <= 1)', name='ck_results_confidence'
        ),
    )
    op.create_index('ix_results_document_id', 'results', ['document_id'])

    op.bulk_insert(
        templates,
        [
            {'id': uuid.uuid4(), 'is_public': True, 'created_by': None, **template}
            for template in PUBLIC_TEMPLATES
        ],
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_index('ix_results_document_id', table_name='results')
    op.drop_table('results')
    op.drop_index('ix_documents_user_created', table_name='documents')
    op.drop_table('documents')
    op.drop_index('ix_templates_visibility', table_name='templates')
    op.drop_table('templates')
    op.drop_table('users')
