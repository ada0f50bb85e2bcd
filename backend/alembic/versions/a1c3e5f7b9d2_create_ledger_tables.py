"""create_ledger_tables

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f7b9d2'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'chart_of_accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('account_code', sa.String(length=50), nullable=False),
        sa.Column('account_name', sa.String(length=255), nullable=False),
        sa.Column('account_type', sa.String(length=20), nullable=False),
        sa.Column('parent_account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('opening_balance', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('current_balance', sa.Numeric(18, 2), nullable=False, server_default='0'),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'account_code', name='_tenant_account_code_uc'),
    )
    op.create_index('ix_chart_of_accounts_id', 'chart_of_accounts', ['id'])
    op.create_index('ix_chart_of_accounts_tenant_id', 'chart_of_accounts', ['tenant_id'])
    op.create_index('ix_chart_of_accounts_account_code', 'chart_of_accounts', ['account_code'])
    op.create_index('ix_chart_of_accounts_account_type', 'chart_of_accounts', ['account_type'])
    op.create_index('ix_chart_of_accounts_parent_account_id', 'chart_of_accounts', ['parent_account_id'])

    journal_entry_status = sa.Enum('draft', 'posted', 'reversed', name='journal_entry_status')
    op.create_table(
        'journal_entries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('entry_number', sa.String(length=50), nullable=False),
        sa.Column('entry_year', sa.Integer(), nullable=False),
        sa.Column('sequence_number', sa.Integer(), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('reference_type', sa.String(length=50), nullable=True),
        sa.Column('reference_id', sa.String(length=64), nullable=True),
        sa.Column('status', journal_entry_status, nullable=False, server_default='draft'),
        sa.Column('posted_by', sa.String(length=255), nullable=True),
        sa.Column('posted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'entry_number', name='_tenant_entry_number_uc'),
        sa.UniqueConstraint('tenant_id', 'entry_year', 'sequence_number', name='_tenant_entry_sequence_uc'),
        sa.UniqueConstraint('tenant_id', 'reference_type', 'reference_id', name='_tenant_entry_reference_uc'),
    )
    op.create_index('ix_journal_entries_id', 'journal_entries', ['id'])
    op.create_index('ix_journal_entries_tenant_id', 'journal_entries', ['tenant_id'])
    op.create_index('ix_journal_entries_entry_date', 'journal_entries', ['entry_date'])
    op.create_index('ix_journal_entries_status', 'journal_entries', ['status'])

    op.create_table(
        'journal_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('journal_entry_id', sa.Integer(), sa.ForeignKey('journal_entries.id'), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=False),
        sa.Column('line_number', sa.Integer(), nullable=False),
        sa.Column('debit', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('credit', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('description', sa.String(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('debit >= 0', name='check_debit_non_negative'),
        sa.CheckConstraint('credit >= 0', name='check_credit_non_negative'),
        sa.CheckConstraint(
            '(debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0)',
            name='check_debit_or_credit_exclusive'
        ),
    )
    op.create_index('ix_journal_items_id', 'journal_items', ['id'])
    op.create_index('ix_journal_items_tenant_id', 'journal_items', ['tenant_id'])
    op.create_index('ix_journal_items_journal_entry_id', 'journal_items', ['journal_entry_id'])
    op.create_index('ix_journal_items_account_id', 'journal_items', ['account_id'])

    op.create_table(
        'general_ledger',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('chart_of_accounts.id'), nullable=False),
        sa.Column('journal_entry_id', sa.Integer(), sa.ForeignKey('journal_entries.id'), nullable=False),
        sa.Column('journal_item_id', sa.Integer(), sa.ForeignKey('journal_items.id'), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('debit', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('credit', sa.Numeric(18, 2), nullable=False, server_default='0'),
        sa.Column('running_balance', sa.Numeric(18, 2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_general_ledger_id', 'general_ledger', ['id'])
    op.create_index('ix_general_ledger_tenant_id', 'general_ledger', ['tenant_id'])
    op.create_index('ix_general_ledger_journal_entry_id', 'general_ledger', ['journal_entry_id'])
    op.create_index('ix_general_ledger_account_date', 'general_ledger', ['account_id', 'entry_date', 'id'])

    op.create_table(
        'app_config',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('value', sa.String(length=255), nullable=False),
        sa.Column('tenant_id', sa.String(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('name', 'tenant_id', name='_app_config_name_tenant_uc'),
    )
    op.create_index('ix_app_config_id', 'app_config', ['id'])
    op.create_index('ix_app_config_name', 'app_config', ['name'])
    op.create_index('ix_app_config_tenant_id', 'app_config', ['tenant_id'])

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('tenant_id', sa.String(), nullable=True),
        sa.Column('table_name', sa.String(), nullable=False),
        sa.Column('record_id', sa.Integer(), nullable=False),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('changed_by', sa.String(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
    )
    op.create_index('ix_audit_log_id', 'audit_log', ['id'])
    op.create_index('ix_audit_log_tenant_id', 'audit_log', ['tenant_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('audit_log')
    op.drop_table('app_config')
    op.drop_table('general_ledger')
    op.drop_table('journal_items')
    op.drop_table('journal_entries')
    sa.Enum(name='journal_entry_status').drop(op.get_bind(), checkfirst=True)
    op.drop_table('chart_of_accounts')
