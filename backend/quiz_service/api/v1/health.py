"""
Health check and status endpoints.
"""
from fastapi import APIRouter, Response

from quiz_service.core import settings
from quiz_service.core.datetime_utils import utc_now
from quiz_service.observability import render_metrics

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns basic health status of the API.
    """
    return {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@router.get("/ping")
async def ping():
    """
    Simple ping endpoint for basic connectivity testing.
    """
    return {"message": "pong"}


metrics_router = APIRouter()


@metrics_router.get("/metrics", include_in_schema=False)
def prometheus_metrics():
    """Prometheus scrape endpoint (mounted only when enabled)."""
    body, content_type = render_metrics()
    return Response(content=body, media_type=content_type)
