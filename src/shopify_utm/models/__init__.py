"""Data models for orders, date ranges and bulk operations."""

from .bulk import BulkOperationHandle
from .order import AttributionRecord, DateRange, OrderRow, OrdersPage

__all__ = ["AttributionRecord", "BulkOperationHandle", "DateRange", "OrderRow", "OrdersPage"]
