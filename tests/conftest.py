"""Pytest configuration for the dashboard tests

WHAT: Shared fixtures and helpers for service and HTTP endpoint tests
WHY: Every upstream call goes through httpx, so tests swap in a MockTransport
     instead of talking to Shopify
"""

import asyncio
import os

# Set test environment before the package configures logging/settings
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import pytest

from shopify_utm.api.client import ShopifyAPIClient

SHOP = "test-shop.myshopify.com"
TOKEN = "shpat_test"


def make_api_client(handler, shop=SHOP, token=TOKEN) -> ShopifyAPIClient:
    """ShopifyAPIClient whose requests are answered by ``handler``."""
    transport = httpx.MockTransport(handler)
    return ShopifyAPIClient(
        shop_domain=shop,
        access_token=token,
        client=httpx.AsyncClient(transport=transport),
    )


def run(coro):
    return asyncio.run(coro)


async def collect(agen):
    return [item async for item in agen]


@pytest.fixture
def rest_order():
    """REST-shaped order (orders.json)."""
    return {
        "id": 5012345678,
        "order_number": 1001,
        "name": "#1001",
        "created_at": "2024-05-01T10:15:00-04:00",
        "landing_site": "/products/mug?utm_source=google&utm_medium=cpc&utm_campaign=spring",
        "referring_site": "https://www.google.com/",
        "note_attributes": [{"name": "utm_term", "value": "coffee mug"}],
    }


@pytest.fixture
def graphql_node():
    """GraphQL / bulk-shaped order node."""
    return {
        "id": "gid://shopify/Order/5012345678",
        "name": "#1001",
        "createdAt": "2024-05-01T14:15:00Z",
        "landingSite": "/products/mug?utm_source=google&utm_medium=cpc&utm_campaign=spring",
        "referringSite": "https://www.google.com/",
        "customAttributes": [{"key": "utm_term", "value": "coffee mug"}],
    }
