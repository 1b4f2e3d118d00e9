"""Service info and health routes."""

from fastapi import APIRouter, Depends

from shopify_utm import __version__
from shopify_utm.config.settings import Settings
from shopify_utm.core.logger import setup_logger
from shopify_utm.server.dependencies import get_settings

logger = setup_logger(__name__)
router = APIRouter()


@router.get("/")
async def root() -> dict:
    """Root endpoint with basic service info."""
    return {
        "service": "Shopify UTM Dashboard",
        "version": __version__,
        "endpoints": {
            "orders": "GET /api/orders",
            "export": "GET /api/export.csv",
            "bulk_start": "POST /api/bulk/start",
            "bulk_status": "GET /api/bulk/status",
            "bulk_download": "GET /api/bulk/download",
            "health": "GET /health",
            "docs": "GET /docs",
        },
    }


@router.get("/health")
async def health_check(settings: Settings = Depends(get_settings)) -> dict:
    """Health check endpoint for monitoring."""
    env_checks = {
        "shopify_store": "ok" if settings.shopify_store else "missing",
        "shopify_access_token": "ok" if settings.shopify_access_token else "missing",
        "api_key": "ok" if settings.api_key else "missing",
    }

    missing_env = [k for k, v in env_checks.items() if v == "missing"]

    return {
        "status": "degraded" if missing_env else "healthy",
        "service": "shopify-utm-dashboard",
        "checks": {"environment": env_checks},
    }
