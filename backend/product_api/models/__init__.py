"""ORM models. Importing this package registers every table on Base.metadata."""

from product_api.models.product import Product

__all__ = ["Product"]
