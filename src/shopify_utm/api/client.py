"""Shopify Admin API client (REST, GraphQL and bulk result download)."""

import re
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import httpx

from shopify_utm.core.exceptions import ConfigurationError, UpstreamRequestError
from shopify_utm.core.logger import setup_logger
from .endpoints import GRAPHQL, ORDERS, ORDERS_COUNT

logger = setup_logger(__name__)

DEFAULT_API_VERSION = "2025-07"

# Link: <https://...page_info=abc>; rel="previous", <https://...page_info=def>; rel="next"
NEXT_LINK_PATTERN = re.compile(r'<([^>]+)>;\s*rel="next"')


def parse_next_link(link_header: Optional[str]) -> Optional[str]:
    """Return the rel="next" URL from a Link header, if any."""
    if not link_header:
        return None
    match = NEXT_LINK_PATTERN.search(link_header)
    return match.group(1) if match else None


class ShopifyAPIClient:
    """Async HTTP client for the Shopify Admin API."""

    def __init__(
        self,
        shop_domain: Optional[str],
        access_token: Optional[str],
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize API client with store credentials."""
        self.shop_domain = shop_domain
        self.access_token = access_token
        self.api_version = api_version
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def _require_config(self) -> None:
        """Fail before any network I/O when the store is not configured."""
        if not self.shop_domain or not self.access_token:
            raise ConfigurationError(
                "Missing Shopify configuration (SHOPIFY_STORE and SHOPIFY_ACCESS_TOKEN)"
            )

    def _url(self, path: str) -> str:
        return f"https://{self.shop_domain}{path.format(version=self.api_version)}"

    def _headers(self) -> Dict[str, str]:
        return {
            "X-Shopify-Access-Token": self.access_token,
            "Accept": "application/json",
        }

    @staticmethod
    def _raise_for_status(response: httpx.Response, what: str) -> None:
        if response.is_success:
            return
        body = response.text
        logger.error(f"Shopify {what} error: {response.status_code} - {body[:500]}")
        raise UpstreamRequestError(
            f"Shopify {what} error: {response.status_code}",
            status_code=response.status_code,
            body=body,
        )

    async def get_orders_page(
        self,
        url: Optional[str] = None,
        params: Optional[dict] = None,
    ) -> Tuple[List[dict], Optional[str]]:
        """
        Fetch one page of REST orders.

        Args:
            url: Next-page URL from a previous call (None for the first page)
            params: Query parameters for the first page

        Returns:
            Tuple of (orders list, next page URL or None if last page)
        """
        self._require_config()

        if url is None:
            url = self._url(ORDERS)
        else:
            # page_info URLs already carry every parameter
            params = None

        logger.info(f"Fetching orders page from {self.shop_domain}")
        response = await self.client.get(url, params=params, headers=self._headers())
        self._raise_for_status(response, "orders")

        data = response.json()
        orders = data.get("orders") or []
        return orders, parse_next_link(response.headers.get("link"))

    async def count_orders(self, params: dict) -> int:
        """
        Fetch the order count for the given filters.

        Raises:
            UpstreamRequestError: On non-success status or a missing/invalid count
        """
        self._require_config()

        response = await self.client.get(
            self._url(ORDERS_COUNT), params=params, headers=self._headers()
        )
        self._raise_for_status(response, "count")

        data = response.json()
        count = data.get("count") if isinstance(data, dict) else None
        if isinstance(count, bool) or not isinstance(count, int):
            raise UpstreamRequestError(
                "Shopify count response has no valid count",
                status_code=response.status_code,
                body=response.text,
            )
        return count

    async def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> dict:
        """
        Execute a GraphQL Admin API query.

        Returns:
            The "data" object of the response

        Raises:
            UpstreamRequestError: On non-success status or top-level GraphQL errors
        """
        self._require_config()

        payload = {"query": query, "variables": variables or {}}
        headers = {**self._headers(), "Content-Type": "application/json"}

        response = await self.client.post(self._url(GRAPHQL), json=payload, headers=headers)
        self._raise_for_status(response, "GraphQL")

        data = response.json()
        if data.get("errors"):
            logger.error(f"GraphQL errors: {data['errors']}")
            raise UpstreamRequestError(
                "Shopify GraphQL errors",
                status_code=response.status_code,
                body=data["errors"],
            )
        return data.get("data") or {}

    async def open_download(self, url: str) -> httpx.Response:
        """
        Open a bulk result URL and check its status before any body is read.

        The URL is pre-signed, so no access token is sent. The returned
        response is still streaming; iter_download() reads and closes it.

        Raises:
            UpstreamRequestError: On non-success status (response already closed)
        """
        request = self.client.build_request("GET", url)
        response = await self.client.send(request, stream=True)
        if not response.is_success:
            try:
                await response.aread()
                self._raise_for_status(response, "bulk download")
            finally:
                await response.aclose()
        return response

    @staticmethod
    async def iter_download(response: httpx.Response) -> AsyncIterator[bytes]:
        """Yield raw (still compressed) chunks as they arrive, then close."""
        try:
            async for chunk in response.aiter_raw():
                yield chunk
        finally:
            await response.aclose()
