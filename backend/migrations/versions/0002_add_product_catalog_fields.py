"""Add SKU, price and stock columns to products."""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0002_add_product_catalog_fields"
down_revision = "0001_create_core_tables"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("products") as batch:
        batch.add_column(sa.Column("sku", sa.String(length=100), nullable=True))
        batch.add_column(sa.Column("price", sa.Numeric(12, 2), nullable=True))
        batch.add_column(sa.Column("stock", sa.Integer(), nullable=False, server_default="0"))
    op.create_index("ix_products_sku", "products", ["sku"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_products_sku", table_name="products")
    with op.batch_alter_table("products") as batch:
        batch.drop_column("stock")
        batch.drop_column("price")
        batch.drop_column("sku")
