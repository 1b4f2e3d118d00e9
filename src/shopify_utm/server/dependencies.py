"""Request-scoped dependencies for the dashboard routes."""

from datetime import tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

import httpx
from fastapi import Depends, HTTPException, Request, status
from pydantic import ValidationError

from shopify_utm.api.client import ShopifyAPIClient
from shopify_utm.config.settings import Settings, settings as app_settings
from shopify_utm.models.order import DateRange
from shopify_utm.services.bulk_export import BulkExportService
from shopify_utm.services.order_fetcher import OrderFetcher, OrderQueryService


def get_settings() -> Settings:
    return app_settings


def get_display_tz(settings: Settings = Depends(get_settings)) -> tzinfo:
    return ZoneInfo(settings.display_timezone)


def get_http_client(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> httpx.AsyncClient:
    """Shared connection pool, created on first use and closed at shutdown."""
    http_client = getattr(request.app.state, "http_client", None)
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=settings.request_timeout)
        request.app.state.http_client = http_client
    return http_client


def get_api_client(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> ShopifyAPIClient:
    return ShopifyAPIClient(
        shop_domain=settings.shopify_store,
        access_token=settings.shopify_access_token,
        api_version=settings.shopify_api_version,
        client=http_client,
    )


def get_order_fetcher(
    api_client: ShopifyAPIClient = Depends(get_api_client),
    settings: Settings = Depends(get_settings),
    display_tz: tzinfo = Depends(get_display_tz),
) -> OrderFetcher:
    return OrderFetcher(api_client, settings.shopify_store, display_tz)


def get_order_query_service(
    fetcher: OrderFetcher = Depends(get_order_fetcher),
) -> OrderQueryService:
    return OrderQueryService(fetcher)


def get_bulk_service(
    api_client: ShopifyAPIClient = Depends(get_api_client),
    settings: Settings = Depends(get_settings),
    display_tz: tzinfo = Depends(get_display_tz),
) -> BulkExportService:
    return BulkExportService(api_client, settings.shopify_store, display_tz)


def parse_date_range(start: Optional[str], end: Optional[str]) -> DateRange:
    """
    Build a DateRange from YYYY-MM-DD strings.

    Raises:
        HTTPException: 400 when a date is missing, malformed or start > end
    """
    if not start or not end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start and end required (YYYY-MM-DD)",
        )
    try:
        return DateRange(start=start, end=end)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid date range: {e.errors()[0]['msg']}",
        )
