"""FastAPI dependencies shared by the route modules."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from product_api.config import Settings
from product_api.database import get_db_session
from product_api.repositories.product_repository import ProductRepository


def get_settings(request: Request) -> Settings:
    """Settings of the application serving this request."""
    return request.app.state.settings


def get_product_repository(
    # Function scope: commit (or rollback) completes before the response starts
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> ProductRepository:
    """A repository bound to this request's session."""
    return ProductRepository(db)
