"""Core module - Logging, error types, and error monitoring."""

from shopify_utm.core.logger import setup_logger
from shopify_utm.core.exceptions import (
    ConfigurationError,
    NotReadyError,
    ShopifyUTMError,
    UpstreamJobError,
    UpstreamRequestError,
)

__all__ = [
    "setup_logger",
    "ConfigurationError",
    "NotReadyError",
    "ShopifyUTMError",
    "UpstreamJobError",
    "UpstreamRequestError",
]
