"""
Authentication Middleware

Simple API key authentication for dashboard endpoints.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Query, status

from shopify_utm.config.settings import Settings
from shopify_utm.server.dependencies import get_settings


async def verify_api_key(
    x_api_key: Optional[str] = Header(None, description="Dashboard API key"),
    api_key: Optional[str] = Query(None, description="Dashboard API key (for links and downloads)"),
    settings: Settings = Depends(get_settings),
):
    """
    Verify API key from X-API-Key header or api_key query parameter.

    Raises:
        HTTPException: If API key is missing, invalid, or dashboard is not configured

    Returns:
        True if authentication successful
    """
    expected_key = settings.api_key

    # Check if dashboard is configured
    if not expected_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Dashboard not configured (API_KEY not set in environment)"
        )

    # Verify API key matches
    if (x_api_key or api_key) != expected_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized - invalid API key",
            headers={"WWW-Authenticate": "ApiKey"}
        )

    return True
