"""
Product API - Test Configuration (conftest.py)
===============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own SQLite file (aiosqlite driver) under tmp_path,
       so tests never share rows and never need PostgreSQL.

Fixture Hierarchy (all function-scoped):
    ├── settings:            Settings pointing at a fresh SQLite file
    ├── database:            Database with the schema created
    │   └── db_session:      AsyncSession on that database
    │       └── repository:  ProductRepository bound to the session
    ├── app:                 create_app(settings) with the schema created
    │   └── test_client:     HTTPX AsyncClient talking to the app in-process
    ├── mock_db_session:     AsyncMock session for store-fault tests
    └── sample_product_data: A valid product body
"""

import os
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any product_api imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SKU_PRECHECK_ENABLED"] = "true"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from product_api.config import Settings
from product_api.database import Base, Database
from product_api.main import create_app
from product_api.repositories.product_repository import ProductRepository


async def _create_schema(database: Database) -> None:
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings for one test, backed by its own SQLite file."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'products.db'}",
        log_level="WARNING",
        request_timeout_seconds=5.0,
        service_name="product-api-test",
    )


@pytest_asyncio.fixture
async def database(settings):
    db = Database.from_settings(settings)
    await _create_schema(db)
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def repository(db_session) -> ProductRepository:
    return ProductRepository(db_session)


@pytest_asyncio.fixture
async def app(settings):
    """A fully wired application (middleware, handlers, routes) on SQLite."""
    application = create_app(settings)
    await _create_schema(application.state.database)
    yield application
    await application.state.database.dispose()


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/api/v1/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_store_fault(mock_db_session):
            mock_db_session.execute.side_effect = OperationalError(...)
            await ProductRepository(mock_db_session).count()
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_product_data():
    """Request body for a valid product."""
    return {
        "sku": "1234567",
        "name": "Widget",
        "description": "A widget",
        "quantity": 10,
        "unit_price": 9.99,
    }


@pytest.fixture
def sample_product_fields():
    """Keyword arguments for building a Product directly."""
    return {
        "sku": "SKU-001",
        "name": "Widget",
        "description": "A widget",
        "quantity": 10,
        "unit_price": Decimal("9.99"),
    }
