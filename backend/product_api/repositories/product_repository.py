"""
Product API - Product Repository (Data-Access Layer)
=====================================================

What:  Translates the seven logical product operations into parameterized
       SQL statements and maps rows back into Product records.
Who:   Constructed per request by the route dependency with that request's
       AsyncSession.

Statements:
    create      INSERT ... RETURNING id            (via ORM flush)
    get_by_id   SELECT ... WHERE id = :id
    get_by_sku  SELECT ... WHERE sku = :sku
    update      UPDATE ... WHERE id = :id RETURNING created_at
    delete      DELETE ... WHERE id = :id
    list        SELECT ... ORDER BY created_at DESC LIMIT :limit OFFSET :offset
    count       SELECT count(id) FROM products

Failure taxonomy:
    NotFoundError   no row matched / zero rows affected
    ConflictError   unique violation on create (duplicate SKU)
    DatabaseError   any other store fault, logged with operation context

No retries and no pool management here: a failed or cancelled statement
surfaces immediately to the caller.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, NoReturn, Optional

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from product_api.exceptions import ConflictError, DatabaseError, NotFoundError
from product_api.models.product import Product

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Timezone-aware current time used for created_at/updated_at."""
    return datetime.now(timezone.utc)


class ProductRepository:
    """
    Data-access object for the products table.

    The repository never commits: the session dependency commits once the
    handler has succeeded, so every operation here is a single statement
    inside the request's transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, product: Product) -> Product:
        """
        Insert a new product and populate its store-assigned id.

        SKU and name must already be validated by the caller.

        Raises:
            ConflictError: SKU already exists (unique constraint)
            DatabaseError: Any other store fault
        """
        now = utcnow()
        product.created_at = now
        product.updated_at = now
        if product.description is None:
            product.description = ""

        try:
            self.session.add(product)
            # flush issues the INSERT and assigns product.id
            await self.session.flush()
        except IntegrityError as e:
            logger.warning("Duplicate SKU on insert: %s", product.sku)
            raise ConflictError(
                message="Product with this SKU already exists",
                context={"sku": product.sku, "error_type": type(e).__name__},
            ) from e
        except SQLAlchemyError as e:
            self._raise_internal("create", e, {"sku": product.sku})

        logger.debug("Inserted product id=%s sku=%s", product.id, product.sku)
        return product

    async def get_by_id(self, product_id: int) -> Product:
        """
        Fetch a product by primary key.

        Raises:
            NotFoundError: No product with this id
            DatabaseError: Query execution failed
        """
        try:
            result = await self.session.execute(
                select(Product).where(Product.id == product_id)
            )
            product = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self._raise_internal("get_by_id", e, {"product_id": product_id})

        if product is None:
            raise NotFoundError(resource="product", resource_id=product_id)
        return product

    async def get_by_sku(self, sku: str) -> Product:
        """
        Fetch a product by SKU.

        Raises:
            NotFoundError: No product with this SKU
            DatabaseError: Query execution failed
        """
        try:
            result = await self.session.execute(
                select(Product).where(Product.sku == sku)
            )
            product = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            self._raise_internal("get_by_sku", e, {"sku": sku})

        if product is None:
            raise NotFoundError(resource="product", context={"sku": sku})
        return product

    async def update(self, product: Product) -> Product:
        """
        Overwrite every mutable field of an existing product.

        `product.id` selects the row; sku, name, description, quantity and
        unit_price are written as given and updated_at is refreshed.
        Partial updates are not supported. SKU uniqueness against other rows
        is left to the store: a violation surfaces as DatabaseError.

        Returns the same object with updated_at and the stored created_at.

        Raises:
            NotFoundError: Zero rows affected (id does not exist)
            DatabaseError: Any other store fault
        """
        product.updated_at = utcnow()
        if product.description is None:
            product.description = ""

        stmt = (
            update(Product)
            .where(Product.id == product.id)
            .values(
                sku=product.sku,
                name=product.name,
                description=product.description,
                quantity=product.quantity,
                unit_price=product.unit_price,
                updated_at=product.updated_at,
            )
            .returning(Product.created_at)
        )

        try:
            result = await self.session.execute(stmt)
            row = result.first()
        except SQLAlchemyError as e:
            self._raise_internal(
                "update", e, {"product_id": product.id, "sku": product.sku}
            )

        if row is None:
            raise NotFoundError(resource="product", resource_id=product.id)

        product.created_at = row.created_at
        return product

    async def delete(self, product_id: int) -> None:
        """
        Hard-delete a product.

        Raises:
            NotFoundError: Zero rows affected (id does not exist)
            DatabaseError: Any other store fault
        """
        try:
            result = await self.session.execute(
                delete(Product).where(Product.id == product_id)
            )
        except SQLAlchemyError as e:
            self._raise_internal("delete", e, {"product_id": product_id})

        if result.rowcount == 0:
            raise NotFoundError(resource="product", resource_id=product_id)

    async def list(self, limit: int, offset: int) -> List[Product]:
        """
        Return one page of products, most recently created first.

        A window past the last row yields an empty list, never an error.
        Ties on created_at are broken by id so pages are stable.
        """
        query = (
            select(Product)
            .order_by(desc(Product.created_at), desc(Product.id))
            .limit(limit)
            .offset(offset)
        )
        try:
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            self._raise_internal("list", e, {"limit": limit, "offset": offset})

    async def count(self) -> int:
        """Total number of products, independent of any pagination window."""
        try:
            result = await self.session.execute(select(func.count(Product.id)))
            return result.scalar() or 0
        except SQLAlchemyError as e:
            self._raise_internal("count", e)

    @staticmethod
    def _raise_internal(
        operation: str,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
    ) -> NoReturn:
        """Log a store fault with its operation context and raise DatabaseError."""
        ctx = {"operation": operation, "error_type": type(error).__name__}
        ctx.update(context or {})
        logger.error("Database error in %s: %s | Context: %s", operation, error, ctx)
        raise DatabaseError(
            message=f"Failed to {_OPERATION_VERBS[operation]}",
            context=ctx,
        ) from error


_OPERATION_VERBS = {
    "create": "create product",
    "get_by_id": "retrieve product",
    "get_by_sku": "retrieve product",
    "update": "update product",
    "delete": "delete product",
    "list": "retrieve products",
    "count": "count products",
}
