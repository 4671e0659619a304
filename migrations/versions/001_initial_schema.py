"""Initial schema - catalog, batches, movement documents, ledger and balances

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _movement_line_columns() -> list:
    return [
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('batch_id', sa.Uuid(), nullable=False),
        sa.Column('quantity_strips', sa.Integer(), nullable=False),
        sa.Column('cost_per_strip', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('reference_document_id', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
    ]


def upgrade() -> None:
    # Catalog reference tables
    op.create_table(
        'product_categories',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('category_name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_product_categories'),
        sa.UniqueConstraint('category_name', name='uq_product_categories_category_name')
    )

    op.create_table(
        'product_sub_categories',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('sub_category_name', sa.String(length=255), nullable=False),
        sa.Column('category_id', sa.Uuid(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['category_id'], ['product_categories.id'],
                                name='fk_product_sub_categories_category_id_product_categories'),
        sa.PrimaryKeyConstraint('id', name='pk_product_sub_categories'),
        sa.UniqueConstraint('sub_category_name', 'category_id', name='uq_product_sub_categories_name_category')
    )
    op.create_index('ix_product_sub_categories_category_id', 'product_sub_categories', ['category_id'])

    op.create_table(
        'product_formulations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('formulation_name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_product_formulations'),
        sa.UniqueConstraint('formulation_name', name='uq_product_formulations_formulation_name')
    )

    op.create_table(
        'suppliers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('supplier_name', sa.String(length=255), nullable=False),
        sa.Column('supplier_code', sa.String(length=50), nullable=True),
        sa.Column('contact_person', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_suppliers'),
        sa.UniqueConstraint('supplier_code', name='uq_suppliers_supplier_code')
    )

    # Products and packaging
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_code', sa.String(length=100), nullable=False),
        sa.Column('product_name', sa.String(length=500), nullable=False),
        sa.Column('generic_name', sa.String(length=500), nullable=False),
        sa.Column('manufacturer', sa.String(length=255), nullable=False),
        sa.Column('category_id', sa.Uuid(), nullable=False),
        sa.Column('sub_category_id', sa.Uuid(), nullable=True),
        sa.Column('formulation_id', sa.Uuid(), nullable=False),
        sa.Column('unit_of_measure_smallest', sa.String(length=50), nullable=False, server_default='Strip'),
        sa.Column('base_cost_per_strip', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('storage_conditions', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(), nullable=True),
        sa.Column('min_stock_level_godown', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('min_stock_level_mr', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lead_time_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint('base_cost_per_strip >= 0', name='ck_products_non_negative_base_cost'),
        sa.CheckConstraint('min_stock_level_godown >= 0', name='ck_products_non_negative_min_godown'),
        sa.CheckConstraint('min_stock_level_mr >= 0', name='ck_products_non_negative_min_mr'),
        sa.CheckConstraint('lead_time_days >= 0', name='ck_products_non_negative_lead_time'),
        sa.ForeignKeyConstraint(['category_id'], ['product_categories.id'],
                                name='fk_products_category_id_product_categories'),
        sa.ForeignKeyConstraint(['sub_category_id'], ['product_sub_categories.id'],
                                name='fk_products_sub_category_id_product_sub_categories'),
        sa.ForeignKeyConstraint(['formulation_id'], ['product_formulations.id'],
                                name='fk_products_formulation_id_product_formulations'),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sa.UniqueConstraint('product_code', name='uq_products_product_code')
    )
    op.create_index('ix_products_category_id', 'products', ['category_id'])
    op.create_index('ix_products_sub_category_id', 'products', ['sub_category_id'])
    op.create_index('ix_products_formulation_id', 'products', ['formulation_id'])
    op.create_index('idx_products_is_active', 'products', ['is_active'])

    op.create_table(
        'packaging_templates',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('template_name', sa.String(length=255), nullable=False),
        sa.Column('unit_name', sa.String(length=100), nullable=False),
        sa.Column('conversion_factor_to_strips', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_base_unit', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order_in_hierarchy', sa.Integer(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.CheckConstraint('conversion_factor_to_strips > 0', name='ck_packaging_templates_positive_conversion_factor'),
        sa.CheckConstraint('order_in_hierarchy > 0', name='ck_packaging_templates_positive_order'),
        sa.PrimaryKeyConstraint('id', name='pk_packaging_templates'),
        sa.UniqueConstraint('template_name', 'unit_name', name='uq_packaging_templates_template_unit')
    )
    op.create_index('ix_packaging_templates_template_name', 'packaging_templates', ['template_name'])

    op.create_table(
        'product_packaging_units',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('template_id', sa.Uuid(), nullable=True),
        sa.Column('unit_name', sa.String(length=100), nullable=False),
        sa.Column('conversion_factor_to_strips', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_base_unit', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order_in_hierarchy', sa.Integer(), nullable=False),
        sa.Column('default_purchase_unit', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('default_sales_unit_mr', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('default_sales_unit_direct', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.CheckConstraint('conversion_factor_to_strips > 0', name='ck_product_packaging_units_positive_conversion_factor'),
        sa.CheckConstraint('order_in_hierarchy > 0', name='ck_product_packaging_units_positive_order'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'],
                                name='fk_product_packaging_units_product_id_products', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['template_id'], ['packaging_templates.id'],
                                name='fk_product_packaging_units_template_id_packaging_templates', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_product_packaging_units'),
        sa.UniqueConstraint('product_id', 'unit_name', name='uq_product_packaging_units_product_unit')
    )
    op.create_index('ix_product_packaging_units_product_id', 'product_packaging_units', ['product_id'])
    op.create_index('idx_product_packaging_units_order', 'product_packaging_units', ['product_id', 'order_in_hierarchy'])

    # Batches
    op.create_table(
        'product_batches',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('batch_number', sa.String(length=100), nullable=False),
        sa.Column('manufacturing_date', sa.Date(), nullable=False),
        sa.Column('expiry_date', sa.Date(), nullable=False),
        sa.Column('batch_cost_per_strip', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='Active'),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('Active', 'Expired', 'Recalled', 'Quarantined')",
                           name='ck_product_batches_valid_batch_status'),
        sa.CheckConstraint('batch_cost_per_strip IS NULL OR batch_cost_per_strip > 0',
                           name='ck_product_batches_positive_batch_cost'),
        sa.CheckConstraint('expiry_date > manufacturing_date', name='ck_product_batches_expiry_after_manufacturing'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_product_batches_product_id_products'),
        sa.PrimaryKeyConstraint('id', name='pk_product_batches'),
        sa.UniqueConstraint('product_id', 'batch_number', name='uq_product_batches_product_batch_number')
    )
    op.create_index('ix_product_batches_product_id', 'product_batches', ['product_id'])
    op.create_index('ix_product_batches_expiry_date', 'product_batches', ['expiry_date'])
    op.create_index('idx_product_batches_status', 'product_batches', ['status'])

    # Movement documents
    op.create_table(
        'stock_purchases',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('purchase_group_id', sa.Uuid(), nullable=False),
        sa.Column('supplier_id', sa.Uuid(), nullable=True),
        sa.Column('purchase_date', sa.DateTime(timezone=True), nullable=False),
        *_movement_line_columns(),
        *_timestamps(),
        sa.CheckConstraint('quantity_strips > 0', name='ck_stock_purchases_positive_purchase_quantity'),
        sa.CheckConstraint('cost_per_strip > 0', name='ck_stock_purchases_positive_purchase_cost'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'],
                                name='fk_stock_purchases_product_id_products', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['batch_id'], ['product_batches.id'],
                                name='fk_stock_purchases_batch_id_product_batches', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['supplier_id'], ['suppliers.id'], name='fk_stock_purchases_supplier_id_suppliers'),
        sa.PrimaryKeyConstraint('id', name='pk_stock_purchases')
    )
    op.create_index('ix_stock_purchases_purchase_group_id', 'stock_purchases', ['purchase_group_id'])
    op.create_index('ix_stock_purchases_product_id', 'stock_purchases', ['product_id'])
    op.create_index('ix_stock_purchases_batch_id', 'stock_purchases', ['batch_id'])
    op.create_index('ix_stock_purchases_purchase_date', 'stock_purchases', ['purchase_date'])

    op.create_table(
        'stock_sales',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('sale_group_id', sa.Uuid(), nullable=False),
        sa.Column('transaction_type', sa.String(length=50), nullable=False),
        sa.Column('location_type_source', sa.String(length=20), nullable=False),
        sa.Column('location_id_source', sa.String(length=100), nullable=True),
        sa.Column('location_type_destination', sa.String(length=20), nullable=False),
        sa.Column('location_id_destination', sa.String(length=100), nullable=True),
        sa.Column('sale_date', sa.DateTime(timezone=True), nullable=False),
        *_movement_line_columns(),
        *_timestamps(),
        sa.CheckConstraint("transaction_type IN ('DISPATCH_TO_MR', 'SALE_DIRECT_GODOWN', 'SALE_BY_MR')",
                           name='ck_stock_sales_valid_sale_transaction_type'),
        sa.CheckConstraint("location_type_source IN ('GODOWN', 'MR')", name='ck_stock_sales_valid_sale_location_source'),
        sa.CheckConstraint("location_type_destination IN ('MR', 'CUSTOMER')",
                           name='ck_stock_sales_valid_sale_location_destination'),
        sa.CheckConstraint('quantity_strips > 0', name='ck_stock_sales_positive_sale_quantity'),
        sa.CheckConstraint('cost_per_strip > 0', name='ck_stock_sales_positive_sale_cost'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'],
                                name='fk_stock_sales_product_id_products', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['batch_id'], ['product_batches.id'],
                                name='fk_stock_sales_batch_id_product_batches', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_stock_sales')
    )
    op.create_index('ix_stock_sales_sale_group_id', 'stock_sales', ['sale_group_id'])
    op.create_index('ix_stock_sales_product_id', 'stock_sales', ['product_id'])
    op.create_index('ix_stock_sales_batch_id', 'stock_sales', ['batch_id'])
    op.create_index('ix_stock_sales_transaction_type', 'stock_sales', ['transaction_type'])
    op.create_index('ix_stock_sales_sale_date', 'stock_sales', ['sale_date'])

    op.create_table(
        'stock_adjustments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('adjustment_group_id', sa.Uuid(), nullable=False),
        sa.Column('adjustment_type', sa.String(length=50), nullable=False),
        sa.Column('location_type_source', sa.String(length=20), nullable=True),
        sa.Column('location_id_source', sa.String(length=100), nullable=True),
        sa.Column('location_type_destination', sa.String(length=20), nullable=True),
        sa.Column('location_id_destination', sa.String(length=100), nullable=True),
        sa.Column('adjustment_date', sa.DateTime(timezone=True), nullable=False),
        *_movement_line_columns(),
        *_timestamps(),
        sa.CheckConstraint('quantity_strips > 0', name='ck_stock_adjustments_positive_adjustment_quantity'),
        sa.CheckConstraint('cost_per_strip > 0', name='ck_stock_adjustments_positive_adjustment_cost'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'],
                                name='fk_stock_adjustments_product_id_products', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['batch_id'], ['product_batches.id'],
                                name='fk_stock_adjustments_batch_id_product_batches', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_stock_adjustments')
    )
    op.create_index('ix_stock_adjustments_adjustment_group_id', 'stock_adjustments', ['adjustment_group_id'])
    op.create_index('ix_stock_adjustments_product_id', 'stock_adjustments', ['product_id'])
    op.create_index('ix_stock_adjustments_batch_id', 'stock_adjustments', ['batch_id'])
    op.create_index('ix_stock_adjustments_adjustment_type', 'stock_adjustments', ['adjustment_type'])
    op.create_index('ix_stock_adjustments_adjustment_date', 'stock_adjustments', ['adjustment_date'])

    # Unified ledger
    op.create_table(
        'stock_transactions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('transaction_group_id', sa.Uuid(), nullable=False),
        sa.Column('document_type', sa.String(length=20), nullable=False),
        sa.Column('document_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('batch_id', sa.Uuid(), nullable=False),
        sa.Column('transaction_type', sa.String(length=50), nullable=False),
        sa.Column('quantity_strips', sa.Integer(), nullable=False),
        sa.Column('location_type_source', sa.String(length=20), nullable=True),
        sa.Column('location_id_source', sa.String(length=100), nullable=True),
        sa.Column('location_type_destination', sa.String(length=20), nullable=True),
        sa.Column('location_id_destination', sa.String(length=100), nullable=True),
        sa.Column('counterparty_type', sa.String(length=20), nullable=True),
        sa.Column('counterparty_id', sa.String(length=100), nullable=True),
        sa.Column('cost_per_strip_at_transaction', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('reference_document_id', sa.String(length=100), nullable=True),
        sa.Column('transaction_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('quantity_strips > 0', name='ck_stock_transactions_positive_transaction_quantity'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'],
                                name='fk_stock_transactions_product_id_products', ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(['batch_id'], ['product_batches.id'],
                                name='fk_stock_transactions_batch_id_product_batches', ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id', name='pk_stock_transactions'),
        sa.UniqueConstraint('sequence', name='uq_stock_transactions_sequence')
    )
    op.create_index('ix_stock_transactions_transaction_group_id', 'stock_transactions', ['transaction_group_id'])
    op.create_index('ix_stock_transactions_document_id', 'stock_transactions', ['document_id'])
    op.create_index('ix_stock_transactions_product_id', 'stock_transactions', ['product_id'])
    op.create_index('ix_stock_transactions_batch_id', 'stock_transactions', ['batch_id'])
    op.create_index('idx_stock_transactions_type', 'stock_transactions', ['transaction_type'])
    op.create_index('idx_stock_transactions_date', 'stock_transactions', ['transaction_date'])

    # Materialized balances
    op.create_table(
        'products_stock_status',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('batch_id', sa.Uuid(), nullable=False),
        sa.Column('location_type', sa.String(length=20), nullable=False),
        sa.Column('location_id', sa.String(length=100), nullable=False),
        sa.Column('current_quantity_strips', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('cost_per_strip', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('last_updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('current_quantity_strips >= 0', name='ck_products_stock_status_non_negative_quantity'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_products_stock_status_product_id_products'),
        sa.ForeignKeyConstraint(['batch_id'], ['product_batches.id'],
                                name='fk_products_stock_status_batch_id_product_batches'),
        sa.PrimaryKeyConstraint('id', name='pk_products_stock_status'),
        sa.UniqueConstraint('product_id', 'batch_id', 'location_type', 'location_id',
                            name='uq_products_stock_status_key')
    )
    op.create_index('ix_products_stock_status_product_id', 'products_stock_status', ['product_id'])
    op.create_index('ix_products_stock_status_batch_id', 'products_stock_status', ['batch_id'])
    op.create_index('idx_products_stock_status_location', 'products_stock_status', ['location_type', 'location_id'])


def downgrade() -> None:
    op.drop_table('products_stock_status')
    op.drop_table('stock_transactions')
    op.drop_table('stock_adjustments')
    op.drop_table('stock_sales')
    op.drop_table('stock_purchases')
    op.drop_table('product_batches')
    op.drop_table('product_packaging_units')
    op.drop_table('packaging_templates')
    op.drop_table('products')
    op.drop_table('suppliers')
    op.drop_table('product_formulations')
    op.drop_table('product_sub_categories')
    op.drop_table('product_categories')
