"""
Product API - Health Check Route
=================================

What:  GET /api/v1/health for load balancer and container probes.
How:   Always answers 200 with the service identity.

The check is a process liveness probe only: it does not open a database
connection, so a healthy answer says nothing about store reachability.
"""

from fastapi import APIRouter, Depends

from product_api import __version__
from product_api.config import Settings
from product_api.routes.deps import get_settings
from product_api.schemas.product import Envelope, HealthData

router = APIRouter(prefix="/api/v1", tags=["Health"])


@router.get(
    "/health",
    response_model=Envelope[HealthData],
    response_model_exclude_none=True,
    summary="Service health check",
)
async def health_check(settings: Settings = Depends(get_settings)) -> Envelope[HealthData]:
    return Envelope[HealthData](
        status=200,
        message="Service is healthy",
        data=HealthData(service=settings.service_name, version=__version__),
    )
