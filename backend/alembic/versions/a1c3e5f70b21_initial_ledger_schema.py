"""initial ledger schema

Revision ID: a1c3e5f70b21
Revises:
Create Date: 2025-11-02 10:12:41.503118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = 'a1c3e5f70b21'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


TRANSACTION_TYPES = (
    'BUY', 'SELL', 'SHOP_BUY', 'PALTI', 'WEIGHT_LOSS', 'FUEL', 'EXPENSE', 'PAYMENT',
    'RECEIVE_PAYMENT', 'DEBIT_NOTE', 'CREDIT_NOTE', 'CASH_TO_BANK', 'BANK_TO_BANK',
    'UPDATE_BANK', 'UPDATE_CASH', 'ADVANCE_PAYMENT',
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def _soft_delete():
    return [
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_by', sa.String(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'app_config',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('value', sa.String(length=255), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_app_config_name', 'app_config', ['name'], unique=True)

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('table_name', sa.String(), nullable=False),
        sa.Column('record_id', sa.Integer(), nullable=False),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('changed_by', sa.String(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
    )

    op.create_table(
        'vehicles',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('registration', sa.String(), nullable=False),
        sa.Column('current_km', sa.Numeric(12, 1), nullable=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_vehicles_registration', 'vehicles', ['registration'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('mobile', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('role', sa.Enum('DRIVER', 'ADMIN', name='userrole'), nullable=False),
        sa.Column('status', sa.Enum('ACTIVE', 'BLOCKED', name='userstatus'), nullable=False),
        sa.Column('base_salary', sa.Numeric(14, 2), nullable=False),
        sa.Column('cash_in_hand', sa.Numeric(14, 2), nullable=False),
        sa.Column('upi_in_hand', sa.Numeric(14, 2), nullable=False),
        sa.Column('vehicle_id', sa.Integer(), sa.ForeignKey('vehicles.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_mobile', 'users', ['mobile'], unique=True)

    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('mobile', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('balance', sa.Numeric(14, 2), nullable=False),
        *_timestamps(),
        *_soft_delete(),
    )

    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False, unique=True),
        sa.Column('mobile', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('amount_due', sa.Numeric(14, 2), nullable=False),
        *_timestamps(),
        *_soft_delete(),
    )

    op.create_table(
        'banks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('label', sa.String(), nullable=True),
        sa.Column('balance', sa.Numeric(14, 2), nullable=False),
        *_timestamps(),
        *_soft_delete(),
    )

    op.create_table(
        'total_capital',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('total_cash', sa.Numeric(14, 2), nullable=False),
        sa.Column('today_cash', sa.Numeric(14, 2), nullable=False),
        sa.Column('cash_last_updated_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'expenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('type', sa.Enum('CASH', 'BANK', name='expensetype'), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('bank_id', sa.Integer(), sa.ForeignKey('banks.id'), nullable=True),
        sa.Column('driver_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        *_timestamps(),
        *_soft_delete(),
    )

    op.create_table(
        'cash_to_bank',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('bank_id', sa.Integer(), sa.ForeignKey('banks.id'), nullable=False),
        sa.Column('bank_name', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        *_soft_delete(),
    )

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('type', sa.Enum(*TRANSACTION_TYPES, name='transactiontype'), nullable=False),
        sa.Column('sub_type', sa.String(), nullable=True),
        sa.Column('unit', sa.Enum('KG', 'LITRE', 'INR', name='unit'), nullable=True),
        sa.Column('amount', sa.Numeric(12, 3), nullable=False),
        sa.Column('rate', sa.Numeric(14, 2), nullable=True),
        sa.Column('total_amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('payment_cash', sa.Numeric(14, 2), nullable=False),
        sa.Column('payment_upi', sa.Numeric(14, 2), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(length=500), nullable=True),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('gps_lat', sa.Numeric(10, 6), nullable=True),
        sa.Column('gps_lng', sa.Numeric(10, 6), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('driver_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('transfer_driver_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=True),
        sa.Column('bank_id', sa.Integer(), sa.ForeignKey('banks.id'), nullable=True),
        sa.Column('to_bank_id', sa.Integer(), sa.ForeignKey('banks.id'), nullable=True),
        sa.Column('vehicle_id', sa.Integer(), sa.ForeignKey('vehicles.id'), nullable=True),
        sa.Column('expense_id', sa.Integer(), sa.ForeignKey('expenses.id'), nullable=True),
        sa.Column('cash_to_bank_id', sa.Integer(), sa.ForeignKey('cash_to_bank.id'), nullable=True),
        sa.Column('cash_delta', sa.Numeric(14, 2), nullable=False),
        sa.Column('bank_delta', sa.Numeric(14, 2), nullable=False),
        sa.Column('to_bank_delta', sa.Numeric(14, 2), nullable=False),
        sa.Column('customer_delta', sa.Numeric(14, 2), nullable=False),
        sa.Column('company_delta', sa.Numeric(14, 2), nullable=False),
        sa.Column('driver_cash_delta', sa.Numeric(14, 2), nullable=False),
        sa.Column('driver_upi_delta', sa.Numeric(14, 2), nullable=False),
        *_timestamps(),
        *_soft_delete(),
    )
    op.create_index('ix_transactions_type', 'transactions', ['type'])
    op.create_index('ix_transactions_date', 'transactions', ['date'])
    op.create_index('ix_transactions_driver_id', 'transactions', ['driver_id'])
    op.create_index('ix_transactions_customer_id', 'transactions', ['customer_id'])
    op.create_index('ix_transactions_company_id', 'transactions', ['company_id'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('bank_id', sa.Integer(), sa.ForeignKey('banks.id'), nullable=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=True),
        sa.Column('transaction_id', sa.Integer(), sa.ForeignKey('transactions.id'), nullable=True),
        *_timestamps(),
        *_soft_delete(),
    )

    op.create_table(
        'borrowed_money',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('admin_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('borrowed_money', sa.Numeric(14, 2), nullable=False),
        sa.Column('borrowed_from', sa.String(), nullable=False),
        sa.Column('borrowed_on', sa.Date(), nullable=False),
        sa.Column('details', sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
    )


def downgrade() -> None:
    for table in (
        'notifications', 'borrowed_money', 'payments', 'transactions', 'cash_to_bank',
        'expenses', 'total_capital', 'banks', 'companies', 'customers', 'users',
        'vehicles', 'audit_log', 'app_config',
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for enum_name in ('transactiontype', 'unit', 'expensetype', 'userstatus', 'userrole'):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
