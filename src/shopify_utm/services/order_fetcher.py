"""Order service for fetching REST orders and building dashboard pages."""

from datetime import timezone, tzinfo
from typing import List, Optional

import httpx

from shopify_utm.api.client import ShopifyAPIClient
from shopify_utm.config.constants import (
    DEFAULT_STORE_DOMAIN,
    MAX_PAGE_SIZE,
    REST_ORDER_STATUS,
    REST_PAGE_SIZE,
)
from shopify_utm.core.exceptions import ShopifyUTMError
from shopify_utm.core.logger import setup_logger
from shopify_utm.models.order import DateRange, OrderRow, OrdersPage
from shopify_utm.services.normalizer import normalize_order, sort_rows

logger = setup_logger(__name__)


def date_range_params(date_range: DateRange) -> dict:
    """REST filters shared by the list and count endpoints."""
    return {
        "status": REST_ORDER_STATUS,
        "created_at_min": date_range.created_at_min,
        "created_at_max": date_range.created_at_max,
    }


class OrderFetcher:
    """Fetches orders through the REST Admin API."""

    def __init__(
        self,
        api_client: ShopifyAPIClient,
        store_domain: Optional[str] = None,
        display_tz: tzinfo = timezone.utc,
    ):
        """Initialize fetcher with API client."""
        self.api_client = api_client
        self.store_domain = store_domain or DEFAULT_STORE_DOMAIN
        self.display_tz = display_tz

    async def fetch_all(self, date_range: DateRange, result_cap: int) -> List[OrderRow]:
        """
        Fetch every order in the range, following rel="next" links.

        Pages are requested one after another and normalized as they arrive.
        Once result_cap rows are collected no further page is requested.
        Any failed page aborts the whole fetch.

        Args:
            date_range: Inclusive creation date range
            result_cap: Maximum number of rows to return

        Returns:
            Rows in the order Shopify delivered them
        """
        params = {**date_range_params(date_range), "limit": REST_PAGE_SIZE}
        rows: List[OrderRow] = []
        next_url = None
        pages = 0

        while len(rows) < result_cap:
            orders, next_url = await self.api_client.get_orders_page(next_url, params)
            pages += 1

            for order in orders:
                rows.append(normalize_order(order, self.store_domain, self.display_tz))
                if len(rows) >= result_cap:
                    break

            if not next_url:
                break

        logger.info(f"Fetched {len(rows)} orders in {pages} pages (cap={result_cap})")
        return rows

    async def count(self, date_range: DateRange) -> int:
        """Return Shopify's order count for the range."""
        return await self.api_client.count_orders(date_range_params(date_range))


class OrderQueryService:
    """Builds paginated dashboard responses from REST orders."""

    def __init__(self, fetcher: OrderFetcher):
        self.fetcher = fetcher

    async def query(
        self,
        date_range: DateRange,
        page: int = 1,
        page_size: int = 100,
        result_cap: int = 2000,
    ) -> OrdersPage:
        """
        Fetch, sort (newest first) and slice orders for one dashboard page.

        The Shopify count is informational only: if it cannot be fetched the
        page is still returned with shopify_total set to None.
        """
        rows = sort_rows(await self.fetcher.fetch_all(date_range, result_cap))

        shopify_total = None
        try:
            shopify_total = await self.fetcher.count(date_range)
        except (ShopifyUTMError, httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not fetch Shopify count: {e}")

        page = max(1, page)
        page_size = max(1, min(MAX_PAGE_SIZE, page_size))
        offset = (page - 1) * page_size

        return OrdersPage(
            total_fetched=len(rows),
            page=page,
            page_size=page_size,
            orders=rows[offset:offset + page_size],
            shopify_total=shopify_total,
        )
