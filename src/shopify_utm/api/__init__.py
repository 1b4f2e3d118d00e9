"""Shopify Admin API module."""

from .client import ShopifyAPIClient, parse_next_link

__all__ = ["ShopifyAPIClient", "parse_next_link"]
