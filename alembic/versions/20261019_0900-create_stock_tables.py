"""create stock tables

Revision ID: 3f9c2a7d81b4
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d81b4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create products and register_sales tables"""

    # Create products table (camelCase columns, as read by the API)
    op.create_table(
        'products',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False, server_default=sa.text('0')),
        sa.Column('initialStock', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('initialStockDate', sa.DateTime(), nullable=True),
        sa.Column('stock', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('minStock', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('quantitySold', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('createdAt', sa.DateTime(), nullable=True, server_default=sa.text('NOW()')),
        sa.Column('updatedAt', sa.DateTime(), nullable=True, server_default=sa.text('NOW()')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('price >= 0', name='ck_products_price_non_negative'),
        sa.CheckConstraint('"initialStock" >= 0', name='ck_products_initial_stock_non_negative'),
        sa.CheckConstraint('"minStock" >= 0', name='ck_products_min_stock_non_negative'),
    )

    # Create indexes for products
    op.create_index('ix_products_name', 'products', ['name'])
    op.create_index('ix_products_category', 'products', ['category'])

    # Create register_sales table (append-only ledger)
    op.create_table(
        'register_sales',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False, server_default=sa.text('uuid_generate_v4()')),
        sa.Column('product', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('register', sa.String(), nullable=True),
        sa.Column('seller', sa.String(), nullable=True),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('price', sa.Float(), nullable=False, server_default=sa.text('0')),
        sa.Column('total', sa.Float(), nullable=False, server_default=sa.text('0')),
        sa.Column('createdAt', sa.DateTime(), nullable=True, server_default=sa.text('NOW()')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity >= 0', name='ck_register_sales_quantity_non_negative'),
    )

    # Create indexes for register_sales
    op.create_index('ix_register_sales_product', 'register_sales', ['product'])
    op.create_index('ix_register_sales_category', 'register_sales', ['category'])
    op.create_index('ix_register_sales_register', 'register_sales', ['register'])
    op.create_index('ix_register_sales_seller', 'register_sales', ['seller'])
    op.create_index('ix_register_sales_date', 'register_sales', ['date'])

    # Enable RLS (Row Level Security)
    op.execute('ALTER TABLE products ENABLE ROW LEVEL SECURITY')
    op.execute('ALTER TABLE register_sales ENABLE ROW LEVEL SECURITY')

    # Create RLS policies
    op.execute('''
        CREATE POLICY "Allow all for service role" ON products
        FOR ALL USING (true) WITH CHECK (true)
    ''')

    op.execute('''
        CREATE POLICY "Allow all for service role" ON register_sales
        FOR ALL USING (true) WITH CHECK (true)
    ''')


def downgrade() -> None:
    """Drop products and register_sales tables"""

    # Drop RLS policies
    op.execute('DROP POLICY IF EXISTS "Allow all for service role" ON register_sales')
    op.execute('DROP POLICY IF EXISTS "Allow all for service role" ON products')

    # Drop register_sales table and indexes
    op.drop_index('ix_register_sales_date', table_name='register_sales')
    op.drop_index('ix_register_sales_seller', table_name='register_sales')
    op.drop_index('ix_register_sales_register', table_name='register_sales')
    op.drop_index('ix_register_sales_category', table_name='register_sales')
    op.drop_index('ix_register_sales_product', table_name='register_sales')
    op.drop_table('register_sales')

    # Drop products table and indexes
    op.drop_index('ix_products_category', table_name='products')
    op.drop_index('ix_products_name', table_name='products')
    op.drop_table('products')
