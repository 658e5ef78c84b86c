"""Create broadcast, pricing request, order and price history tables

Revision ID: b001_create_broadcast_tables
Revises:
Create Date: 2026-02-10

Creates the tables behind broadcast orders:
- sellers and customer_addresses (read by the broadcast flow)
- broadcasts and their per-seller pricing_requests
- orders and order_line_items materialized from priced requests
- price_history used to pre-fill future quotes
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'b001_create_broadcast_tables'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(with_updated: bool = True):
    cols = [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()')),
    ]
    if with_updated:
        cols.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('NOW()'))
        )
    return cols


def upgrade() -> None:
    op.create_table(
        'sellers',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('owner_id', sa.String(), nullable=False, index=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('logo_url', sa.String(), nullable=True),
        sa.Column('rating', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('is_approved', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('operation_mode', sa.String(), nullable=False, server_default='standard'),
        sa.Column('delivery_fee', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('custom_order_settings', sa.JSON(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        'customer_addresses',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('customer_id', sa.String(), nullable=False, index=True),
        sa.Column('label', sa.String(), nullable=True),
        sa.Column('street', sa.String(), nullable=False),
        sa.Column('building', sa.String(), nullable=True),
        sa.Column('city', sa.String(), nullable=False),
        sa.Column('district', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('notes', sa.String(), nullable=True),
        *_timestamps(with_updated=False),
    )

    op.create_table(
        'broadcasts',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('customer_id', sa.String(), nullable=False, index=True),
        sa.Column('input_kind', sa.String(), nullable=False),
        sa.Column('raw_text', sa.Text(), nullable=True),
        sa.Column('voice_reference', sa.String(), nullable=True),
        sa.Column('image_references', sa.JSON(), nullable=True),
        sa.Column('customer_notes', sa.Text(), nullable=True),
        sa.Column('seller_ids', sa.JSON(), nullable=False),
        sa.Column('delivery_address_snapshot', sa.JSON(), nullable=True),
        sa.Column('order_kind', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='active'),
        sa.Column('pricing_deadline', sa.DateTime(timezone=True), nullable=False),
        sa.Column('auto_cancel_deadline', sa.DateTime(timezone=True), nullable=False),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expired_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_broadcasts_customer_status', 'broadcasts', ['customer_id', 'status'])

    op.create_table(
        'pricing_requests',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('broadcast_id', sa.String(), sa.ForeignKey('broadcasts.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('seller_id', sa.String(), sa.ForeignKey('sellers.id'), nullable=False, index=True),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('items_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('delivery_fee', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('pricing_expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('order_id', sa.String(), nullable=True, index=True),
        sa.Column('claimed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('priced_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('broadcast_id', 'seller_id', name='uq_pricing_request_broadcast_seller'),
    )
    op.create_index('ix_pricing_requests_seller_status', 'pricing_requests', ['seller_id', 'status'])

    op.create_table(
        'orders',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('order_number', sa.String(50), nullable=False, unique=True),
        sa.Column('seller_id', sa.String(), nullable=False, index=True),
        sa.Column('customer_id', sa.String(), nullable=False, index=True),
        sa.Column('pricing_request_id', sa.String(), nullable=True, index=True),
        sa.Column('order_flow', sa.String(20), nullable=False, server_default='custom'),
        sa.Column('order_kind', sa.String(20), nullable=False, server_default='pickup'),
        sa.Column('status', sa.String(50), nullable=False),
        sa.Column('payment_status', sa.String(50), nullable=False, server_default='pending'),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('delivery_fee', sa.Numeric(12, 2), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'order_line_items',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('order_id', sa.String(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('pricing_request_id', sa.String(), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('unit_kind', sa.String(20), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('availability', sa.String(20), nullable=False),
        sa.Column('substitute_name', sa.String(200), nullable=True),
        sa.Column('substitute_quantity', sa.Numeric(12, 3), nullable=True),
        sa.Column('substitute_unit_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('substitute_total', sa.Numeric(12, 2), nullable=True),
        sa.Column('seller_notes', sa.Text(), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        *_timestamps(with_updated=False),
        sa.CheckConstraint('quantity > 0', name='check_order_line_items_quantity_positive'),
    )

    op.create_table(
        'price_history',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('seller_id', sa.String(), nullable=False, index=True),
        sa.Column('customer_id', sa.String(), nullable=False, index=True),
        sa.Column('item_name_normalized', sa.String(200), nullable=False),
        sa.Column('item_name', sa.String(200), nullable=False),
        sa.Column('unit_kind', sa.String(20), nullable=True),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 3), nullable=True),
        sa.Column('order_id', sa.String(), nullable=True),
        sa.Column('pricing_request_id', sa.String(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            'seller_id', 'customer_id', 'item_name_normalized',
            name='uq_price_history_seller_customer_item',
        ),
    )


def downgrade() -> None:
    op.drop_table('price_history')
    op.drop_table('order_line_items')
    op.drop_table('orders')
    op.drop_index('ix_pricing_requests_seller_status', table_name='pricing_requests')
    op.drop_table('pricing_requests')
    op.drop_index('ix_broadcasts_customer_status', table_name='broadcasts')
    op.drop_table('broadcasts')
    op.drop_table('customer_addresses')
    op.drop_table('sellers')
