"""initial livestock marketplace tables

Revision ID: 0001_initial_livestock
Revises: 
Create Date: 2026-10-19
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_livestock'
down_revision = None
branch_labels = None
depends_on = None

ORDER_STATUSES = ('PENDING', 'CONFIRMED', 'DELIVERED', 'RECEIVED', 'CANCELLED')
PACKAGE_TIERS = ('basic', 'standard', 'premium')
SUBSCRIPTION_STATUSES = ('pending', 'approved', 'rejected')


def upgrade():
    op.create_table('farmers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32)),
        sa.Column('location', sa.String(length=128)),
        sa.Column('address', sa.String(length=255)),
        sa.Column('token_count', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('date_joined', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_farmers_email', 'farmers', ['email'])

    op.create_table('customers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32)),
        sa.Column('location', sa.String(length=128)),
        sa.Column('address', sa.String(length=255)),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('1')),
        sa.Column('date_joined', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_customers_email', 'customers', ['email'])

    op.create_table('admins',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True)),
    )
    op.create_index('ix_admins_email', 'admins', ['email'])

    op.create_table('orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('farmer_id', sa.Integer(), sa.ForeignKey('farmers.id'), nullable=False),
        sa.Column('products', sa.JSON(), nullable=False),
        sa.Column('status', sa.Enum(*ORDER_STATUSES, name='orderstatus', native_enum=False, length=16), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('is_paid', sa.Boolean(), nullable=False, server_default=sa.text('0')),
        sa.Column('payment_method', sa.String(length=32)),
        sa.Column('order_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('confirmed_date', sa.DateTime(timezone=True)),
        sa.Column('delivered_date', sa.DateTime(timezone=True)),
        sa.Column('received_date', sa.DateTime(timezone=True)),
        sa.Column('cancelled_date', sa.DateTime(timezone=True)),
        sa.Column('delivery_address', sa.String(length=255)),
        sa.Column('customer_notes', sa.Text()),
        sa.Column('farmer_notes', sa.Text()),
        sa.Column('cancel_reason', sa.Text()),
        sa.Column('customer_name', sa.String(length=128)),
        sa.Column('customer_phone', sa.String(length=32)),
        sa.Column('farmer_name', sa.String(length=128)),
        sa.Column('farmer_phone', sa.String(length=32)),
        sa.Column('farmer_location', sa.String(length=128)),
        sa.Column('version', sa.Integer(), nullable=False, server_default=sa.text('1')),
    )
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    op.create_index('ix_orders_farmer_id', 'orders', ['farmer_id'])
    op.create_index('ix_orders_status', 'orders', ['status'])
    op.create_index('ix_orders_order_date', 'orders', ['order_date'])

    op.create_table('subscriptions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('user_type', sa.String(length=16), nullable=False, server_default='farmer'),
        sa.Column('user_email', sa.String(length=128)),
        sa.Column('user_name', sa.String(length=128)),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('tokens', sa.Integer(), nullable=False),
        sa.Column('transaction_id', sa.String(length=64), nullable=False, unique=True),
        sa.Column('package', sa.Enum(*PACKAGE_TIERS, name='packagetier', native_enum=False, length=16), nullable=False),
        sa.Column('status', sa.Enum(*SUBSCRIPTION_STATUSES, name='subscriptionstatus', native_enum=False, length=16), nullable=False),
        sa.Column('admin_notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_subscriptions_user_id', 'subscriptions', ['user_id'])
    op.create_index('ix_subscriptions_transaction_id', 'subscriptions', ['transaction_id'])
    op.create_index('ix_subscriptions_status', 'subscriptions', ['status'])
    op.create_index('ix_subscriptions_created_at', 'subscriptions', ['created_at'])

    op.create_table('token_transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('farmer_id', sa.Integer(), sa.ForeignKey('farmers.id'), nullable=False),
        sa.Column('delta', sa.Integer(), nullable=False),
        sa.Column('balance_after', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=32), nullable=False),
        sa.Column('feature_used', sa.String(length=64)),
        # one ledger credit per subscription
        sa.Column('subscription_id', sa.Integer(), sa.ForeignKey('subscriptions.id'), nullable=True, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_token_transactions_farmer_id', 'token_transactions', ['farmer_id'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_role', sa.String(length=16), nullable=True),
        sa.Column('actor_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64), nullable=True),
        sa.Column('entity_id', sa.String(length=64), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_audit_logs_actor_id', 'audit_logs', ['actor_id'])
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])


def downgrade():
    op.drop_table('audit_logs')
    op.drop_table('token_transactions')
    op.drop_table('subscriptions')
    op.drop_table('orders')
    op.drop_table('admins')
    op.drop_table('customers')
    op.drop_table('farmers')
