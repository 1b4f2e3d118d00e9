"""Services module - Attribution extraction, normalization, retrieval and CSV export."""

from shopify_utm.services.attribution import (
    extract_from_attributes,
    extract_from_url,
    merge_attribution,
)
from shopify_utm.services.bulk_export import BulkExportService
from shopify_utm.services.csv_renderer import parse_columns, render_csv, stream_csv
from shopify_utm.services.normalizer import normalize_order, sort_rows
from shopify_utm.services.order_fetcher import OrderFetcher, OrderQueryService

__all__ = [
    "extract_from_attributes",
    "extract_from_url",
    "merge_attribution",
    "BulkExportService",
    "parse_columns",
    "render_csv",
    "stream_csv",
    "normalize_order",
    "sort_rows",
    "OrderFetcher",
    "OrderQueryService",
]
