"""create products table

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "products",
        sa.Column("sku", sa.String(length=128), nullable=False, comment="Merchant stock keeping unit; upsert key"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("brand", sa.String(length=120), nullable=False),
        sa.Column("color", sa.String(length=64), nullable=True),
        sa.Column("size", sa.String(length=32), nullable=True),
        sa.Column("mrp", sa.Numeric(precision=12, scale=2), nullable=False, comment="Maximum retail price"),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=False, comment="Selling price; never above mrp"),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("sku", name="pk_products"),
    )
    op.create_index("ix_products_brand", "products", ["brand"], unique=False)
    op.create_index("ix_products_color", "products", ["color"], unique=False)
    op.create_index("ix_products_price", "products", ["price"], unique=False)
    op.create_index("ix_products_brand_price", "products", ["brand", "price"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_products_brand_price", table_name="products")
    op.drop_index("ix_products_price", table_name="products")
    op.drop_index("ix_products_color", table_name="products")
    op.drop_index("ix_products_brand", table_name="products")
    op.drop_table("products")
