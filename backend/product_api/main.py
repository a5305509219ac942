"""
Product API - FastAPI Application Factory
==========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() builds the Database from Settings, stores both on
       app.state, registers middleware, exception handlers and routers.
Who:   uvicorn imports `product_api.main:app`; tests call create_app()
       with their own Settings.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  Req ID → Real IP → Recovery → Logging → Timeout         │
    │                                                          │
    │  Routes:                                                 │
    │  /api/v1/products[/{id}]          /api/v1/health         │
    │                                                          │
    │  Exception Handlers:                                     │
    │  Validation→400  NotFound→404  Conflict→409  DB→500      │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, log the listening address
    Shutdown: dispose the database engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from product_api import __version__
from product_api.config import Settings, settings as default_settings
from product_api.database import Database
from product_api.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    ProductAPIError,
    ValidationError,
)
from product_api.middleware import (
    RealIPMiddleware,
    RecoveryMiddleware,
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    TimeoutMiddleware,
)
from product_api.middleware.request_id import RequestIDLogFilter
from product_api.routes import health, products
from product_api.schemas.product import envelope_response

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s

    The request ID comes from RequestIDLogFilter, attached to the handler so
    every record (including third-party ones) carries the attribute.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # product_api.access already records every request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if log_level == "DEBUG" else logging.WARNING
    )


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: logging. Shutdown: close all pooled database connections."""
    app_settings: Settings = app.state.settings

    setup_logging(app_settings.log_level)
    logger.info("%s %s starting up", app_settings.service_name, __version__)
    logger.info(
        "Server ready at http://%s:%d (request timeout %.0fs)",
        app_settings.backend_host,
        app_settings.backend_port,
        app_settings.request_timeout_seconds,
    )

    yield

    logger.info("%s shutting down", app_settings.service_name)
    await app.state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the error taxonomy to status codes and error envelopes.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        RequestValidationError  → 400 Bad Request (bad path id or body)
        NotFoundError           → 404 Not Found
        ConflictError           → 409 Conflict
        DatabaseError           → 500 Internal Server Error
        ProductAPIError (base)  → status of its ErrorKind
        HTTPException           → its own status (unmatched route, wrong method)

    Unexpected exceptions are answered by RecoveryMiddleware. Responses
    never include context, SQL or stack traces; those are logged only.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error on %s: %s", request.url.path, exc.message)
        return envelope_response(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ):
        """FastAPI's own parsing failures: non-integer path id, malformed JSON body."""
        errors = exc.errors()
        if any(err.get("loc", ("",))[0] == "path" for err in errors):
            message = "Invalid product ID"
        else:
            message = "Invalid request body"
        logger.warning("Rejected request to %s: %s", request.url.path, errors)
        return envelope_response(400, message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        logger.info("Not found: %s | Context: %s", exc.message, exc.context)
        return envelope_response(404, exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        logger.warning("Conflict: %s | Context: %s", exc.message, exc.context)
        return envelope_response(409, exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return envelope_response(500, exc.message)

    @app.exception_handler(ProductAPIError)
    async def handle_product_api_error(request: Request, exc: ProductAPIError):
        logger.error("Application error: %s | Context: %s", exc.message, exc.context)
        return envelope_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = "Route not found"
        elif exc.status_code == 405:
            message = "Method not allowed"
        else:
            message = str(exc.detail)
        return envelope_response(exc.status_code, message, headers=exc.headers)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to build the app from. Defaults to the
                  environment-derived process settings.

    Every dependency (settings, database) hangs off app.state and reaches
    the routes through FastAPI's Depends(), so separate apps never share
    an engine.
    """
    app_settings = settings or default_settings

    app = FastAPI(
        title="Product API",
        description="CRUD REST API for products with offset pagination.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.database = Database.from_settings(app_settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added = outermost. Execution order:
    # RequestID → RealIP → Recovery → Logging → Timeout
    app.add_middleware(TimeoutMiddleware, timeout=app_settings.request_timeout_seconds)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RecoveryMiddleware)
    app.add_middleware(RealIPMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(products.router)
    app.include_router(health.router)

    return app


# uvicorn entry point: `uvicorn product_api.main:app`
app = create_app()
