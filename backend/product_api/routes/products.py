"""
Product API - Product Route Handlers
=====================================

What:  CRUD endpoints for /api/v1/products.
How:   Each handler follows the same template: parse and validate input,
       call ProductRepository, wrap the result in an Envelope. Failures are
       raised as ProductAPIError subclasses; the global exception handlers
       in main.py turn them into error envelopes.

Route Inventory:
    GET    /api/v1/products?limit&offset   list with pagination
    GET    /api/v1/products/{id}           single product
    POST   /api/v1/products                create
    PUT    /api/v1/products/{id}           full replace
    DELETE /api/v1/products/{id}           hard delete

Path ids go through parse_product_id: anything but a plain decimal integer
is a 400 "Invalid product ID"; an id outside the id column range is a 404.
"""

import logging
import re
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, Path, Query, Response

from product_api.config import Settings
from product_api.exceptions import ConflictError, NotFoundError, ValidationError
from product_api.models.product import Product
from product_api.repositories.product_repository import ProductRepository
from product_api.routes.deps import get_product_repository, get_settings
from product_api.schemas.product import (
    Envelope,
    PaginationMeta,
    ProductIn,
    ProductOut,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/products", tags=["Products"])

DEFAULT_LIMIT = 50
MAX_LIMIT = 100
DEFAULT_OFFSET = 0

# Decimal integers only: no whitespace, underscores or fractions
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1
# ids are SERIAL (int4); anything outside cannot exist
_ID_MIN, _ID_MAX = -(2**31), 2**31 - 1

_ERROR_RESPONSES = {
    400: {"description": "Invalid product ID or request body", "model": Envelope},
    500: {"description": "Server error", "model": Envelope},
}


def parse_int(raw: Optional[str]) -> Optional[int]:
    """
    Strict decimal integer parsing; None for anything malformed.

    Accepts an optional sign followed by ASCII digits, within 64-bit range.
    """
    if raw is None or not _INTEGER_RE.fullmatch(raw):
        return None
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def parse_product_id(
    product_id: str = Path(description="Product ID (integer)"),
) -> int:
    """
    Path dependency resolving the product id.

    Malformed ids are a 400; well-formed ids outside the id column's range
    are a 404 without touching the store.
    """
    value = parse_int(product_id)
    if value is None:
        raise ValidationError(message="Invalid product ID", field="id")
    if not _ID_MIN <= value <= _ID_MAX:
        raise NotFoundError(resource="product", resource_id=product_id)
    return value


def parse_pagination(limit: Optional[str], offset: Optional[str]) -> Tuple[int, int]:
    """
    Resolve raw query-string values into a (limit, offset) window.

    Malformed values never fail the request:
        limit   non-numeric or <= 0 → 50, > 100 → 100
        offset  non-numeric or < 0  → 0
    """
    limit_value = DEFAULT_LIMIT
    offset_value = DEFAULT_OFFSET

    parsed = parse_int(limit)
    if parsed is not None and parsed > 0:
        limit_value = min(parsed, MAX_LIMIT)

    parsed = parse_int(offset)
    if parsed is not None and parsed >= 0:
        offset_value = parsed

    return limit_value, offset_value


def _require_fields(payload: ProductIn) -> None:
    """SKU and name are the only required fields of a product body."""
    if not payload.sku:
        raise ValidationError(message="SKU is required", field="sku")
    if not payload.name:
        raise ValidationError(message="Product name is required", field="name")


@router.get(
    "",
    response_model=Envelope[List[ProductOut]],
    response_model_exclude_none=True,
    responses={500: _ERROR_RESPONSES[500]},
    summary="List products",
    description=(
        "Returns a page of products, most recently created first. "
        "Malformed limit/offset values fall back to their defaults."
    ),
)
async def list_products(
    limit: Optional[str] = Query(
        default=None,
        description=f"Items per page (default {DEFAULT_LIMIT}, max {MAX_LIMIT})",
    ),
    offset: Optional[str] = Query(default=None, description="Items to skip (default 0)"),
    repo: ProductRepository = Depends(get_product_repository),
) -> Envelope[List[ProductOut]]:
    limit_value, offset_value = parse_pagination(limit, offset)

    products = await repo.list(limit_value, offset_value)
    total = await repo.count()

    return Envelope[List[ProductOut]](
        status=200,
        message="Products retrieved successfully",
        data=[ProductOut.model_validate(p) for p in products],
        pagination=PaginationMeta(limit=limit_value, offset=offset_value, total=total),
    )


@router.get(
    "/{product_id}",
    response_model=Envelope[ProductOut],
    response_model_exclude_none=True,
    responses={
        **_ERROR_RESPONSES,
        404: {"description": "Product not found", "model": Envelope},
    },
    summary="Get a product by ID",
)
async def get_product(
    product_id: int = Depends(parse_product_id),
    repo: ProductRepository = Depends(get_product_repository),
) -> Envelope[ProductOut]:
    product = await repo.get_by_id(product_id)
    return Envelope[ProductOut](
        status=200,
        message="Product retrieved successfully",
        data=ProductOut.model_validate(product),
    )


@router.post(
    "",
    status_code=201,
    response_model=Envelope[ProductOut],
    response_model_exclude_none=True,
    responses={
        **_ERROR_RESPONSES,
        409: {"description": "Product with this SKU already exists", "model": Envelope},
    },
    summary="Create a product",
)
async def create_product(
    payload: ProductIn,
    repo: ProductRepository = Depends(get_product_repository),
    settings: Settings = Depends(get_settings),
) -> Envelope[ProductOut]:
    """
    Create a product.

    The SKU lookup before the insert only produces the 409 early; two
    concurrent creates can both pass it, and the unique constraint then
    rejects the second one inside repo.create() with the same ConflictError.
    """
    _require_fields(payload)

    if settings.sku_precheck_enabled:
        try:
            existing: Optional[Product] = await repo.get_by_sku(payload.sku)
        except NotFoundError:
            existing = None
        if existing is not None:
            raise ConflictError(
                message="Product with this SKU already exists",
                context={"sku": payload.sku, "existing_id": existing.id},
            )

    product = Product(**payload.model_dump())
    await repo.create(product)

    logger.info("Product created: id=%s sku=%s", product.id, product.sku)
    return Envelope[ProductOut](
        status=201,
        message="Product created successfully",
        data=ProductOut.model_validate(product),
    )


@router.put(
    "/{product_id}",
    response_model=Envelope[ProductOut],
    response_model_exclude_none=True,
    responses={
        **_ERROR_RESPONSES,
        404: {"description": "Product not found", "model": Envelope},
    },
    summary="Replace a product",
    description="Overwrites every mutable field. Any id in the body is ignored.",
)
async def update_product(
    *,
    product_id: int = Depends(parse_product_id),
    payload: ProductIn,
    repo: ProductRepository = Depends(get_product_repository),
) -> Envelope[ProductOut]:
    _require_fields(payload)

    product = Product(id=product_id, **payload.model_dump())
    await repo.update(product)

    logger.info("Product updated: id=%s sku=%s", product.id, product.sku)
    return Envelope[ProductOut](
        status=200,
        message="Product updated successfully",
        data=ProductOut.model_validate(product),
    )


@router.delete(
    "/{product_id}",
    status_code=204,
    response_class=Response,
    responses={
        **_ERROR_RESPONSES,
        404: {"description": "Product not found", "model": Envelope},
    },
    summary="Delete a product",
)
async def delete_product(
    product_id: int = Depends(parse_product_id),
    repo: ProductRepository = Depends(get_product_repository),
) -> Response:
    """Hard delete. 204 responses carry no body."""
    await repo.delete(product_id)
    logger.info("Product deleted: id=%s", product_id)
    return Response(status_code=204)
