"""initial_schema

Revision ID: initial_schema
Revises:
Create Date: 2024-01-01 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'initial_schema'
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    # Databases created by init_db() already have the tables
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = inspector.get_table_names()

    if 'users' not in existing_tables:
        op.create_table(
            'users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('username', sa.String(length=50), nullable=False),
            sa.Column('password_hash', sa.String(length=200), nullable=False),
            sa.Column('is_admin', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_users_username', 'users', ['username'], unique=True)

    if 'company_details' not in existing_tables:
        op.create_table(
            'company_details',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('slogan', sa.String(length=200), nullable=True),
            sa.Column('address', sa.String(length=500), nullable=True),
            sa.Column('gstin', sa.String(length=15), nullable=True),
            sa.Column('phone', sa.String(length=20), nullable=True),
            sa.Column('email', sa.String(length=255), nullable=True),
            sa.Column('bank_name', sa.String(length=120), nullable=True),
            sa.Column('account_name', sa.String(length=200), nullable=True),
            sa.Column('account_number', sa.String(length=40), nullable=True),
            sa.Column('account_type', sa.String(length=40), nullable=True),
            sa.Column('ifsc_code', sa.String(length=11), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )

    if 'units' not in existing_tables:
        op.create_table(
            'units',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=60), nullable=False),
            sa.Column('abbreviation', sa.String(length=10), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_units_name', 'units', ['name'])

    if 'categories' not in existing_tables:
        op.create_table(
            'categories',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=120), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_categories_name', 'categories', ['name'])

    if 'customers' not in existing_tables:
        op.create_table(
            'customers',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=True),
            sa.Column('phone', sa.String(length=20), nullable=True),
            sa.Column('gstin', sa.String(length=15), nullable=True),
            sa.Column('billing_address', sa.String(length=500), nullable=True),
            sa.Column('is_guest', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_customers_name', 'customers', ['name'])

    if 'products' not in existing_tables:
        op.create_table(
            'products',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('description', sa.String(length=500), nullable=True),
            sa.Column('hsn_code', sa.String(length=20), nullable=True),
            sa.Column('sku', sa.String(length=60), nullable=True),
            sa.Column('stock_quantity', sa.Integer(), nullable=False),
            sa.Column('tax_rate', sa.Numeric(precision=6, scale=4), nullable=False),
            sa.Column('unit_price', sa.Numeric(precision=14, scale=4), nullable=False),
            sa.Column('unit_id', sa.Integer(), nullable=True),
            sa.Column('category_id', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['unit_id'], ['units.id']),
            sa.ForeignKeyConstraint(['category_id'], ['categories.id']),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_products_name', 'products', ['name'])
        op.create_index('ix_products_sku', 'products', ['sku'])
        op.create_index('ix_products_unit_id', 'products', ['unit_id'])
        op.create_index('ix_products_category_id', 'products', ['category_id'])

    if 'purchases' not in existing_tables:
        op.create_table(
            'purchases',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('product_id', sa.Integer(), nullable=False),
            sa.Column('purchase_date', sa.Date(), nullable=False),
            sa.Column('reference_invoice', sa.String(length=60), nullable=True),
            sa.Column('quantity', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['product_id'], ['products.id']),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_purchases_product_id', 'purchases', ['product_id'])
        op.create_index('ix_purchases_purchase_date', 'purchases', ['purchase_date'])

    if 'invoices' not in existing_tables:
        op.create_table(
            'invoices',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('customer_id', sa.Integer(), nullable=True),
            sa.Column('invoice_number', sa.String(length=40), nullable=False),
            sa.Column('invoice_date', sa.Date(), nullable=False),
            sa.Column('total_amount', sa.Numeric(precision=14, scale=2), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_invoices_customer_id', 'invoices', ['customer_id'])
        op.create_index('ix_invoices_invoice_number', 'invoices', ['invoice_number'], unique=True)
        op.create_index('ix_invoices_invoice_date', 'invoices', ['invoice_date'])

    if 'invoice_items' not in existing_tables:
        op.create_table(
            'invoice_items',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('invoice_id', sa.Integer(), nullable=False),
            sa.Column('product_id', sa.Integer(), nullable=False),
            sa.Column('quantity', sa.Integer(), nullable=False),
            sa.Column('unit_price', sa.Numeric(precision=14, scale=6), nullable=False),
            sa.Column('tax_rate', sa.Numeric(precision=6, scale=4), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['product_id'], ['products.id']),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index('ix_invoice_items_invoice_id', 'invoice_items', ['invoice_id'])
        op.create_index('ix_invoice_items_product_id', 'invoice_items', ['product_id'])

def downgrade() -> None:
    for table in ('invoice_items', 'invoices', 'purchases', 'products', 'customers', 'categories', 'units', 'company_details', 'users'):
        op.drop_table(table)
