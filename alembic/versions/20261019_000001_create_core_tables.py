"""Create organizations, users, customers and invoice tables

Revision ID: 20261019_000001
Revises: None
Create Date: 2026-10-19

Creates the tenant tables (organizations, users), customers with their
running financial totals, invoices with items and reminders, and the
per-organization, per-year invoice counter.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def _address(prefix: str = ''):
    return [
        sa.Column(f'{prefix}street', sa.String(length=255), nullable=True),
        sa.Column(f'{prefix}city', sa.String(length=100), nullable=True),
        sa.Column(f'{prefix}state', sa.String(length=100), nullable=True),
        sa.Column(f'{prefix}zip_code', sa.String(length=20), nullable=True),
        sa.Column(f'{prefix}country', sa.String(length=100), nullable=True),
    ]


def upgrade() -> None:
    """Create the core tables."""
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('logo_url', sa.String(length=500), nullable=True),
        *_address(),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('tax_id', sa.String(length=50), nullable=True),
        sa.Column('bank_name', sa.String(length=255), nullable=True),
        sa.Column('bank_account_number', sa.String(length=100), nullable=True),
        sa.Column('bank_routing_number', sa.String(length=100), nullable=True),
        sa.Column('currency', sa.String(length=10), nullable=False, server_default='USD'),
        sa.Column('tax_rate', sa.Numeric(precision=5, scale=2), nullable=False, server_default='0'),
        sa.Column('payment_terms', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('invoice_prefix', sa.String(length=10), nullable=False, server_default='INV'),
        sa.Column('is_setup_complete', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_organizations_email', 'organizations', ['email'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='USER'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['org_id'], ['organizations.id'], name='fk_users_org_id', ondelete='CASCADE'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_org_id', 'users', ['org_id'])

    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('website', sa.String(length=255), nullable=True),
        sa.Column('tax_id', sa.String(length=50), nullable=True),
        *_address(),
        *_address('billing_'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('total_invoiced', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('total_paid', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('outstanding_balance', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('last_invoice_date', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['org_id'], ['organizations.id'], name='fk_customers_org_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], name='fk_customers_created_by'),
        sa.UniqueConstraint('org_id', 'email', name='uq_customers_org_email'),
    )
    op.create_index('ix_customers_org_id', 'customers', ['org_id'])
    op.create_index('ix_customers_created_by', 'customers', ['created_by'])
    op.create_index('ix_customers_org_name', 'customers', ['org_id', 'name'])
    op.create_index('ix_customers_org_active', 'customers', ['org_id', 'is_active'])

    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('invoice_no', sa.String(length=32), nullable=False),
        sa.Column('issue_date', sa.DateTime(), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=False),
        sa.Column('sub_total', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('tax', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('tax_from_rate', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('discount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('amount_paid', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column(
            'status',
            sa.Enum('draft', 'sent', 'paid', 'overdue', name='invoice_status', create_constraint=True),
            nullable=False,
            server_default='draft'
        ),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('numbering_fallback_used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('total_clamped', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['org_id'], ['organizations.id'], name='fk_invoices_org_id', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(
            ['customer_id'],
            ['customers.id'],
            name='fk_invoices_customer_id',
            ondelete='NO ACTION'
        ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], name='fk_invoices_created_by'),
        sa.UniqueConstraint('org_id', 'invoice_no', name='uq_invoices_org_invoice_no'),
    )

    # Create indexes for common queries
    op.create_index('ix_invoices_org_id', 'invoices', ['org_id'])
    op.create_index('ix_invoices_customer_id', 'invoices', ['customer_id'])
    op.create_index('ix_invoices_due_date', 'invoices', ['due_date'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])
    op.create_index('ix_invoices_org_status', 'invoices', ['org_id', 'status'])
    op.create_index('ix_invoices_org_due_date', 'invoices', ['org_id', 'due_date'])
    op.create_index('ix_invoices_customer_status', 'invoices', ['customer_id', 'status'])

    op.create_table(
        'invoice_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('page_qty', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('service_charge', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('rate', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], name='fk_invoice_items_invoice_id', ondelete='CASCADE'),
    )
    op.create_index('ix_invoice_items_invoice_id', 'invoice_items', ['invoice_id'])

    op.create_table(
        'invoice_reminders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invoice_id', sa.Integer(), nullable=False),
        sa.Column('sent_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('sent_by', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['invoice_id'], ['invoices.id'], name='fk_invoice_reminders_invoice_id', ondelete='CASCADE'
        ),
        sa.ForeignKeyConstraint(['sent_by'], ['users.id'], name='fk_invoice_reminders_sent_by'),
    )
    op.create_index('ix_invoice_reminders_invoice_id', 'invoice_reminders', ['invoice_id'])

    op.create_table(
        'invoice_sequences',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('org_id', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('last_value', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['org_id'], ['organizations.id'], name='fk_invoice_sequences_org_id', ondelete='CASCADE'
        ),
        sa.UniqueConstraint('org_id', 'year', name='uq_invoice_sequences_org_year'),
    )


def downgrade() -> None:
    """Drop the core tables."""
    op.drop_table('invoice_sequences')
    op.drop_index('ix_invoice_reminders_invoice_id', table_name='invoice_reminders')
    op.drop_table('invoice_reminders')
    op.drop_index('ix_invoice_items_invoice_id', table_name='invoice_items')
    op.drop_table('invoice_items')
    op.drop_index('ix_invoices_customer_status', table_name='invoices')
    op.drop_index('ix_invoices_org_due_date', table_name='invoices')
    op.drop_index('ix_invoices_org_status', table_name='invoices')
    op.drop_index('ix_invoices_status', table_name='invoices')
    op.drop_index('ix_invoices_due_date', table_name='invoices')
    op.drop_index('ix_invoices_customer_id', table_name='invoices')
    op.drop_index('ix_invoices_org_id', table_name='invoices')
    op.drop_table('invoices')
    op.drop_index('ix_customers_org_active', table_name='customers')
    op.drop_index('ix_customers_org_name', table_name='customers')
    op.drop_index('ix_customers_created_by', table_name='customers')
    op.drop_index('ix_customers_org_id', table_name='customers')
    op.drop_table('customers')
    op.drop_index('ix_users_org_id', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_index('ix_organizations_email', table_name='organizations')
    op.drop_table('organizations')
