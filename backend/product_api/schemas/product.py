"""
Product API - Pydantic Request/Response Schemas
================================================

What:  Pydantic models defining the API contract.
How:   FastAPI validates request bodies against ProductIn and serializes
       ProductOut records inside the uniform Envelope.

Envelope shape (every response except 204):
    {
        "status": 200,
        "message": "Products retrieved successfully",
        "data": [...],                                  # omitted when absent
        "pagination": {"limit": 50, "offset": 0, "total": 7}   # list only
    }
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field, ValidationInfo, field_serializer, field_validator
from starlette.responses import JSONResponse


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ProductIn(BaseModel):
    """
    Body of POST /api/v1/products and PUT /api/v1/products/{id}.

    SKU and name default to empty strings so that the handlers can report
    which one is missing. An explicit null is treated like an absent field.
    Fields the server owns (id, created_at, updated_at) are ignored if the
    client sends them.
    """
    sku: str = Field(default="", max_length=255, description="Unique stock keeping unit")
    name: str = Field(default="", max_length=255, description="Product name")
    description: str = Field(default="", description="Free-form description")
    quantity: int = Field(default=0, description="Units in stock")
    unit_price: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=10,
        decimal_places=2,
        description="Price per unit",
    )

    @field_validator("sku", "name", "description", "quantity", "unit_price", mode="before")
    @classmethod
    def null_to_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return cls.model_fields[info.field_name].default
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ProductOut(BaseModel):
    """Full representation of a stored product."""
    id: int
    sku: str
    name: str
    description: str = ""
    quantity: int = 0
    unit_price: Decimal = Decimal("0.00")
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("description", mode="before")
    @classmethod
    def null_description(cls, v: Optional[str]) -> str:
        """Rows written outside the API may carry a NULL description."""
        return v or ""

    @field_serializer("unit_price")
    def serialize_unit_price(self, v: Decimal) -> float:
        return float(v)


class PaginationMeta(BaseModel):
    """Window that produced a list response plus the unwindowed total."""
    limit: int = Field(description="Items per page (1-100)")
    offset: int = Field(description="Items skipped")
    total: int = Field(description="Total number of products")


class HealthData(BaseModel):
    """Static service identity reported by the health check."""
    service: str
    version: str


DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """
    Uniform response wrapper for success and error responses.

    Parametrized by payload type for OpenAPI, e.g. Envelope[ProductOut] or
    Envelope[List[ProductOut]].
    """
    status: int = Field(description="HTTP status code, repeated in the body")
    message: str = Field(description="Human-readable summary")
    data: Optional[DataT] = Field(default=None, description="Payload, absent on errors")
    pagination: Optional[PaginationMeta] = Field(
        default=None,
        description="Present only on list responses",
    )


def envelope_response(
    status: int,
    message: str,
    data: Any = None,
    pagination: Optional[PaginationMeta] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """
    Serialize an Envelope into a JSONResponse with a matching status code.

    Used by the exception handlers and middleware, which run outside
    FastAPI's response_model serialization.
    """
    body = Envelope[Any](status=status, message=message, data=data, pagination=pagination)
    return JSONResponse(
        status_code=status,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )
