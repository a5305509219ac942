"""
Product API - Product SQLAlchemy Model
=======================================

What:  ORM model representing the `products` table.
Who:   Used by ProductRepository for CRUD statements and by Alembic's
       autogenerate through Base.metadata.

Table Design:
    - id: Integer primary key assigned by the store, never reused
    - sku: Unique business key, looked up on create
    - unit_price: NUMERIC(10,2), exact currency arithmetic
    - created_at / updated_at: UTC with timezone

    Indexes:
        idx_products_sku           sku lookups
        idx_products_name          name lookups
        idx_products_created_at    ORDER BY created_at DESC listing
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from product_api.database import Base


class Product(Base):
    """
    A product record.

    Lifecycle:
        1. Built from a request body and inserted by ProductRepository.create
           (store assigns id; both timestamps set to the insert time)
        2. Overwritten wholesale by ProductRepository.update
           (updated_at refreshed)
        3. Hard-deleted by ProductRepository.delete
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    sku: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        default="",
    )

    quantity: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    unit_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0.00"),
        server_default=text("0.00"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # sqlite_autoincrement keeps SQLite from reusing the id of a deleted
    # last row; PostgreSQL sequences never reuse ids.
    __table_args__ = (
        Index("idx_products_sku", "sku"),
        Index("idx_products_name", "name"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, sku='{self.sku}')>"


# Listing reads newest first
Index("idx_products_created_at", Product.created_at.desc())
