"""Create products table

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `products` table with its unique SKU constraint and the
       sku, name and created_at (DESC) indexes.

Rollback: downgrade() drops the indexes and the table (all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the products table with all columns, constraints, and indexes."""
    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("sku", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "quantity",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column(
            "unit_price",
            sa.Numeric(10, 2),
            nullable=False,
            server_default=sa.text("0.00"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("sku"),
        sqlite_autoincrement=True,
    )

    op.create_index("idx_products_sku", "products", ["sku"])
    op.create_index("idx_products_name", "products", ["name"])
    # Listing reads newest first: ORDER BY created_at DESC
    op.create_index(
        "idx_products_created_at",
        "products",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    """Drop the products table and its indexes. Destructive."""
    op.drop_index("idx_products_created_at", table_name="products")
    op.drop_index("idx_products_name", table_name="products")
    op.drop_index("idx_products_sku", table_name="products")
    op.drop_table("products")
