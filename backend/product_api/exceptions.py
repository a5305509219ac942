"""
Product API - Custom Exception Hierarchy
=========================================

What:  Application-specific exceptions for each failure kind.
How:   Each exception carries a client-safe message, a context dict for
       server-side diagnostics, and an `ErrorKind` tag. Global exception
       handlers (registered in main.py) map the kind to an HTTP status and
       a response envelope.
Who:   Raised by the repository and route handlers; caught by global handlers.

Exception Hierarchy:
    ProductAPIError (base)
    ├── ValidationError   → 400 Bad Request
    ├── NotFoundError     → 404 Not Found
    ├── ConflictError     → 409 Conflict
    └── DatabaseError     → 500 Internal Server Error

Callers branch on the exception type (or `exc.kind`), never on message text.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Failure taxonomy shared by the repository and the HTTP layer."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


class ProductAPIError(Exception):
    """
    Base exception for all Product API errors.

    Attributes:
        message:  Client-facing error description (safe to return)
        context:  Debug info (logged, never returned to the client)
        kind:     ErrorKind tag used for status mapping
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class ValidationError(ProductAPIError):
    """
    Raised when client input is malformed or missing required fields.

    Detected entirely in the route handlers; never reaches the repository.
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(ProductAPIError):
    """
    Raised when no row matches the requested key.

    The repository converts "no row returned" and "zero rows affected" into
    this exception.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource_id = resource_id


class ConflictError(ProductAPIError):
    """Raised when a write would violate a uniqueness constraint (SKU)."""

    kind = ErrorKind.CONFLICT

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(ProductAPIError):
    """
    Raised when a store operation fails for any other reason.

    The message is generic and safe to return. The context holds the
    operation name, identifiers and the underlying error type; it is logged
    server-side only.
    """

    kind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
