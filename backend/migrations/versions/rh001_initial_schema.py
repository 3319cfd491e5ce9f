"""Initial schema: tenants, users, products, transactions, transaction_items

MULTI-TENANT SCHEMA:
1. 'tenants' is the tenant root
2. users, products and transactions carry tenant_id (nullable for legacy rows)
3. SKU uniqueness is per tenant: uq_products_tenant_sku (tenant_id, sku)
4. stock >= 0, quantity >= 1 and discount 0-100 are CHECK constraints
5. (tenant_id, created_at) index backs report window scans

Revision ID: rh001_initial_schema
Revises:
Create Date: 2026-02-01
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'rh001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    # ==========================================================================
    # Tenant root
    # ==========================================================================
    op.create_table('tenants',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('about', sa.Text(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone_number', sa.String(length=20), nullable=True),
        sa.Column('logo', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )

    # ==========================================================================
    # Users
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='user'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_tenant_id', 'users', ['tenant_id'], unique=False)

    # ==========================================================================
    # Products
    # ==========================================================================
    op.create_table('products',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=False),
        sa.Column('cost_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('sale_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('image_ref', sa.String(length=500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tenant_id', 'sku', name='uq_products_tenant_sku'),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_products_tenant_id', 'products', ['tenant_id'], unique=False)
    op.create_index('ix_products_tenant_name', 'products', ['tenant_id', 'name'], unique=False)

    # ==========================================================================
    # Transactions (sales) and their lines
    # ==========================================================================
    op.create_table('transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tenant_id', sa.Integer(), nullable=True),
        sa.Column('cashier', sa.String(length=255), nullable=False),
        sa.Column('payment_method', sa.String(length=50), nullable=False),
        sa.Column('discount', sa.Numeric(precision=5, scale=2), nullable=False, server_default='0'),
        sa.Column('total_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['tenant_id'], ['tenants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('discount >= 0 AND discount <= 100', name='ck_transactions_discount_range'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_transactions_tenant_id', 'transactions', ['tenant_id'], unique=False)
    op.create_index('ix_transactions_tenant_created', 'transactions', ['tenant_id', 'created_at'], unique=False)

    op.create_table('transaction_items',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('transaction_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity >= 1', name='ck_transaction_items_quantity_positive'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_transaction_items_transaction_id', 'transaction_items', ['transaction_id'], unique=False)
    op.create_index('ix_transaction_items_product_id', 'transaction_items', ['product_id'], unique=False)


def downgrade():
    op.drop_index('ix_transaction_items_product_id', table_name='transaction_items')
    op.drop_index('ix_transaction_items_transaction_id', table_name='transaction_items')
    op.drop_table('transaction_items')

    op.drop_index('ix_transactions_tenant_created', table_name='transactions')
    op.drop_index('ix_transactions_tenant_id', table_name='transactions')
    op.drop_table('transactions')

    op.drop_index('ix_products_tenant_name', table_name='products')
    op.drop_index('ix_products_tenant_id', table_name='products')
    op.drop_table('products')

    op.drop_index('ix_users_tenant_id', table_name='users')
    op.drop_index('ix_users_username', table_name='users')
    op.drop_table('users')

    op.drop_table('tenants')
