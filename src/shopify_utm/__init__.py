"""Shopify UTM attribution dashboard."""

__version__ = "1.0.0"
