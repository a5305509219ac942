"""
Product API - Database Session Management
==========================================

What:  Async SQLAlchemy engine, session factory, and the FastAPI session
       dependency.
How:   `Database` owns one engine (and therefore one connection pool) per
       application. `create_app()` builds it from Settings and stores it on
       `app.state.database`; `get_db_session` hands each request its own
       session that commits on success and rolls back on error.
When:  Engine is created once per application; sessions are per request.

Connection Pooling:
    pool_size:     Persistent connections for normal load
    max_overflow:  Temporary connections for spikes (total max = sum of both)
    pool_pre_ping: Validates connections before use
    pool_recycle:  Recycles connections every hour

    Requests beyond the pool limit wait for a free connection; the pool is
    the only concurrency bound on store operations.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from product_api.config import Settings
from product_api.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations and
    the test suite uses to create the schema.
    """
    pass


class Database:
    """
    Owns the async engine and session factory for one application instance.

    Attributes:
        engine:           AsyncEngine with its connection pool
        session_factory:  async_sessionmaker producing AsyncSession objects
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        # expire_on_commit=False: records stay readable after the request's
        # commit, when the response model is serialized
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build the engine from configuration."""
        engine_kwargs: Dict[str, Any] = {
            "pool_pre_ping": settings.db_pool_pre_ping,
            # Echo SQL only when debugging
            "echo": settings.log_level == "DEBUG",
        }
        if not settings.is_sqlite:
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_recycle=3600,
            )
        return cls(create_async_engine(settings.database_url, **engine_kwargs))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Unit-of-work scope for a single request.

        How it works:
            1. Creates a new session from the factory
            2. Yields it to the caller (the caller performs statements)
            3. On error: rolls back, then re-raises
            4. On success: commits; a failed commit rolls back and raises
               DatabaseError
            5. Always: closes the session (returns connection to pool)

        Cancellation (request timeout) is a BaseException and skips the
        rollback branch; closing the session discards the open transaction.
        """
        async with self.session_factory() as session:
            try:
                try:
                    yield session
                except Exception:
                    await session.rollback()
                    raise

                try:
                    await session.commit()
                except SQLAlchemyError as e:
                    await session.rollback()
                    logger.error("Commit failed: %s", e)
                    raise DatabaseError(
                        message="Failed to save changes",
                        context={"operation": "commit", "error_type": type(e).__name__},
                    ) from e
            finally:
                await session.close()

    async def dispose(self) -> None:
        """Closes all pooled connections. Called on application shutdown."""
        await self.engine.dispose()
        logger.info("Database engine disposed")


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    The Database instance comes from the application that is serving the
    request, so each app built by create_app() uses its own engine.

    Declare it with scope="function" so the commit runs before the response
    is sent and a failed commit still becomes an error response:
        @router.get("/products")
        async def list_products(
            db: AsyncSession = Depends(get_db_session, scope="function"),
        ):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
