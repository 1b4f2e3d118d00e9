"""Exception types raised by the retrieval pipeline.

Every error that terminates a fetch or export derives from ``ShopifyUTMError``
so the server can map it to one structured response. Malformed bulk lines
are not represented here: they are skipped where they are read.
"""

from typing import Any, List, Optional


class ShopifyUTMError(Exception):
    """Base class for dashboard errors."""

    def to_dict(self) -> dict:
        return {"error": str(self)}


class ConfigurationError(ShopifyUTMError):
    """Store domain or access token is missing."""


class UpstreamRequestError(ShopifyUTMError):
    """Shopify answered with a non-success response."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def to_dict(self) -> dict:
        return {
            "error": str(self),
            "upstream_status": self.status_code,
            "upstream_body": self.body,
        }


class UpstreamJobError(ShopifyUTMError):
    """Bulk operation was rejected at submission or ended without a result."""

    def __init__(
        self,
        message: str,
        errors: Optional[List[Any]] = None,
        error_code: Optional[str] = None,
        status: Optional[str] = None,
    ):
        super().__init__(message)
        self.errors = errors or []
        self.error_code = error_code
        self.status = status

    def to_dict(self) -> dict:
        return {
            "error": str(self),
            "user_errors": self.errors,
            "error_code": self.error_code,
            "status": self.status,
        }


class NotReadyError(ShopifyUTMError):
    """Bulk result requested before the operation completed."""

    def __init__(self, message: str, status: str):
        super().__init__(message)
        self.status = status

    def to_dict(self) -> dict:
        return {"error": str(self), "status": self.status}
