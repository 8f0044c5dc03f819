"""initial wholesale schema

Revision ID: w1a2b3c4d5e6
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the wholesale membership schema:
- members / admins / sessions: identities and bearer sessions
- invite_codes: single-use application gating
- products / restricted_states: catalog and shipping restrictions
- orders / order_items / order_sequences: order documents and numbering
- notifications: best-effort e-mail outbox
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'w1a2b3c4d5e6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'members',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('business_name', sa.String(length=255), nullable=False),
        sa.Column('business_type', sa.String(length=64), nullable=True),
        sa.Column('license_number', sa.String(length=128), nullable=True),
        sa.Column('ein', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=False),
        sa.Column('street', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=128), nullable=False),
        sa.Column('state', sa.String(length=2), nullable=False),
        sa.Column('zip', sa.String(length=10), nullable=False),
        sa.Column('ship_street', sa.String(length=255), nullable=True),
        sa.Column('ship_city', sa.String(length=128), nullable=True),
        sa.Column('ship_state', sa.String(length=2), nullable=True),
        sa.Column('ship_zip', sa.String(length=10), nullable=True),
        sa.Column('invite_code_used', sa.String(length=32), nullable=False),
        sa.Column('invited_by', sa.String(length=255), nullable=True),
        sa.Column('how_heard', sa.String(length=255), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('personal_ref_code', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('status_reason', sa.String(length=500), nullable=True),
        sa.Column('monthly_active', sa.Boolean(), nullable=False),
        sa.Column('app_fee_paid', sa.Boolean(), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=True),
        sa.Column('applied_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('personal_ref_code', name='uq_members_personal_ref_code'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_members_email', 'members', ['email'], unique=True)
    op.create_index('ix_members_status', 'members', ['status'], unique=False)
    op.create_index('ix_members_status_applied', 'members', ['status', 'applied_at'], unique=False)

    op.create_table(
        'admins',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_admins_email', 'admins', ['email'], unique=True)

    op.create_table(
        'sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('principal_id', sa.Integer(), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sessions_token_hash', 'sessions', ['token_hash'], unique=True)
    op.create_index('ix_sessions_principal', 'sessions', ['principal_id', 'is_admin'], unique=False)
    op.create_index('ix_sessions_expires', 'sessions', ['expires_at'], unique=False)

    op.create_table(
        'invite_codes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_by_admin', sa.Boolean(), nullable=False),
        sa.Column('used_by', sa.Integer(), nullable=True),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['members.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['used_by'], ['members.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_invite_codes_code', 'invite_codes', ['code'], unique=True)
    op.create_index('ix_invite_codes_status', 'invite_codes', ['status'], unique=False)
    op.create_index('ix_invite_codes_created_by', 'invite_codes', ['created_by'], unique=False)

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('product_type', sa.String(length=64), nullable=True),
        sa.Column('product_category', sa.String(length=64), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('cultivation_method', sa.String(length=64), nullable=True),
        sa.Column('cultivation_location', sa.String(length=128), nullable=True),
        sa.Column('delta9_thc_pct', sa.Numeric(precision=6, scale=3), nullable=True),
        sa.Column('thca_pct', sa.Numeric(precision=6, scale=3), nullable=True),
        sa.Column('cbd_pct', sa.Numeric(precision=6, scale=3), nullable=True),
        sa.Column('farm_bill_compliant', sa.Boolean(), nullable=False),
        sa.Column('compliance_statement', sa.Text(), nullable=True),
        sa.Column('price_per_lb', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('price_5lb', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('price_10lb', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('inventory_lbs', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('featured', sa.Boolean(), nullable=False),
        sa.Column('display_order', sa.Integer(), nullable=False),
        sa.Column('short_description', sa.String(length=500), nullable=True),
        sa.Column('long_description', sa.Text(), nullable=True),
        sa.Column('product_image_url', sa.String(length=500), nullable=True),
        sa.Column('restricted_states', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_products_sku', 'products', ['sku'], unique=True)
    op.create_index('ix_products_status', 'products', ['status'], unique=False)
    op.create_index('ix_products_status_order', 'products', ['status', 'display_order'], unique=False)

    op.create_table(
        'restricted_states',
        sa.Column('state_code', sa.String(length=2), nullable=False),
        sa.Column('state_name', sa.String(length=64), nullable=True),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('state_code'),
    )

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('payment_method', sa.String(length=32), nullable=True),
        sa.Column('ship_state', sa.String(length=2), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('subtotal', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('total', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('inventory_reserved', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('shipped_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('canceled_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['member_id'], ['members.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_member_id', 'orders', ['member_id'], unique=False)
    op.create_index('ix_orders_status', 'orders', ['status'], unique=False)
    op.create_index('ix_orders_member_created', 'orders', ['member_id', 'created_at'], unique=False)
    op.create_index('ix_orders_status_created', 'orders', ['status', 'created_at'], unique=False)

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('quantity_lbs', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('price_per_lb', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('subtotal', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['product_id'], ['products.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'], unique=False)
    op.create_index('ix_order_items_product_id', 'order_items', ['product_id'], unique=False)

    op.create_table(
        'order_sequences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=32), nullable=False),
        sa.Column('next_number', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_order_sequences_name'),
        sqlite_autoincrement=True,
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('template', sa.String(length=64), nullable=False),
        sa.Column('recipient', sa.String(length=255), nullable=False),
        sa.Column('subject', sa.String(length=255), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('last_error', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('last_attempt_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_notifications_template', 'notifications', ['template'], unique=False)
    op.create_index('ix_notifications_status', 'notifications', ['status'], unique=False)
    op.create_index('ix_notifications_status_created', 'notifications', ['status', 'created_at'], unique=False)

    # Seed the default restricted states
    restricted = sa.table(
        'restricted_states',
        sa.column('state_code', sa.String),
        sa.column('state_name', sa.String),
        sa.column('reason', sa.String),
    )
    op.bulk_insert(restricted, [
        {'state_code': 'ID', 'state_name': 'Idaho', 'reason': 'State prohibits hemp-derived cannabinoid products'},
        {'state_code': 'OR', 'state_name': 'Oregon', 'reason': 'State restrictions on hemp product shipments'},
        {'state_code': 'SD', 'state_name': 'South Dakota', 'reason': 'State prohibits smokable hemp'},
    ])


def downgrade():
    op.drop_table('notifications')
    op.drop_table('order_sequences')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('restricted_states')
    op.drop_table('products')
    op.drop_table('invite_codes')
    op.drop_table('sessions')
    op.drop_table('admins')
    op.drop_table('members')
