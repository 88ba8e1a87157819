"""initial restopos schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete multi-tenant schema:
- restaurants: tenant root (one bootstrap row allowed via partial unique index)
- users: staff accounts, email unique across all restaurants
- session_tokens: hashed bearer tokens with the active tenant scope
- categories, products, customers, purchases: tenant-scoped catalog
- sales, sale_items: orders with snapshot line items
- security_events: append-only audit trail

Every tenant-owned table references restaurants.id with ON DELETE CASCADE.
Money columns are integer cents.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _restaurant_fk():
    return sa.Column(
        'restaurant_id', sa.String(length=36),
        sa.ForeignKey('restaurants.id', ondelete='CASCADE'),
        nullable=False,
    )


def upgrade():
    # ============================================================================
    # restaurants: tenant root
    # ============================================================================
    op.create_table(
        'restaurants',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=64), nullable=False),
        sa.Column('is_bootstrap', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    # At most one bootstrap restaurant: serializes concurrent first registrations
    op.create_index(
        'uq_restaurants_bootstrap', 'restaurants', ['is_bootstrap'], unique=True,
        sqlite_where=sa.text('is_bootstrap = 1'),
        postgresql_where=sa.text('is_bootstrap = true'),
    )

    # ============================================================================
    # users
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        _restaurant_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("role IN ('superadmin', 'admin', 'seller', 'waiter')", name='ck_users_role'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_restaurant_id', 'users', ['restaurant_id'])
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_restaurant_role', 'users', ['restaurant_id', 'role'])

    # ============================================================================
    # session_tokens
    # ============================================================================
    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('active_restaurant_id', sa.String(length=36),
                  sa.ForeignKey('restaurants.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=128), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # catalog
    # ============================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.String(length=36), nullable=False),
        _restaurant_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_categories_restaurant_id', 'categories', ['restaurant_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.String(length=36), nullable=False),
        _restaurant_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('price_cents >= 0', name='ck_products_price_nonnegative'),
    )
    op.create_index('ix_products_restaurant_id', 'products', ['restaurant_id'])
    op.create_index('ix_products_restaurant_name', 'products', ['restaurant_id', 'name'])

    op.create_table(
        'customers',
        sa.Column('id', sa.String(length=36), nullable=False),
        _restaurant_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_customers_restaurant_id', 'customers', ['restaurant_id'])

    op.create_table(
        'purchases',
        sa.Column('id', sa.String(length=36), nullable=False),
        _restaurant_fk(),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('supplier', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('purchase_date', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='ck_purchases_quantity_positive'),
        sa.CheckConstraint('unit_price_cents >= 0', name='ck_purchases_unit_price_nonnegative'),
    )
    op.create_index('ix_purchases_restaurant_id', 'purchases', ['restaurant_id'])
    op.create_index('ix_purchases_restaurant_date', 'purchases', ['restaurant_id', 'purchase_date'])

    # ============================================================================
    # sales + snapshot line items
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.String(length=36), nullable=False),
        _restaurant_fk(),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('table_number', sa.String(length=64), nullable=False),
        sa.Column('total_price_cents', sa.Integer(), nullable=False),
        sa.Column('sale_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('user_id', sa.String(length=36), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('user_name', sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("status IN ('pending', 'paid')", name='ck_sales_status'),
        sa.CheckConstraint('total_price_cents >= 0', name='ck_sales_total_nonnegative'),
    )
    op.create_index('ix_sales_restaurant_id', 'sales', ['restaurant_id'])
    op.create_index('ix_sales_status', 'sales', ['status'])
    op.create_index('ix_sales_user_id', 'sales', ['user_id'])
    op.create_index('ix_sales_restaurant_status_date', 'sales', ['restaurant_id', 'status', 'sale_date'])

    # product_id has no foreign key: items are a snapshot
    op.create_table(
        'sale_items',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('sale_id', sa.String(length=36), sa.ForeignKey('sales.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.String(length=36), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('sale_id', 'position', name='uq_sale_items_sale_position'),
        sa.CheckConstraint('quantity > 0', name='ck_sale_items_quantity_positive'),
        sa.CheckConstraint('unit_price_cents >= 0', name='ck_sale_items_price_nonnegative'),
    )
    op.create_index('ix_sale_items_sale_id', 'sale_items', ['sale_id'])

    # ============================================================================
    # security_events: append-only, no FKs so the trail outlives its subjects
    # ============================================================================
    op.create_table(
        'security_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('restaurant_id', sa.String(length=36), nullable=True),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('resource', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_security_events_restaurant_id', 'security_events', ['restaurant_id'])
    op.create_index('ix_security_events_user_id', 'security_events', ['user_id'])
    op.create_index('ix_security_events_event_type', 'security_events', ['event_type'])
    op.create_index('ix_security_events_success', 'security_events', ['success'])
    op.create_index('ix_security_events_occurred_at', 'security_events', ['occurred_at'])
    op.create_index('ix_security_events_user_type', 'security_events', ['user_id', 'event_type'])
    op.create_index('ix_security_events_restaurant_occurred', 'security_events', ['restaurant_id', 'occurred_at'])


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('security_events')
    op.drop_table('sale_items')
    op.drop_table('sales')
    op.drop_table('purchases')
    op.drop_table('customers')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('session_tokens')
    op.drop_table('users')
    op.drop_table('restaurants')
