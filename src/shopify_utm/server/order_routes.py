"""
Order API Routes

REST-backed order listing and CSV export for the dashboard.
"""

from typing import Any, Dict, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse, StreamingResponse

from shopify_utm.config.constants import DEFAULT_PAGE_SIZE, REST_EXPORT_FILENAME
from shopify_utm.config.settings import Settings
from shopify_utm.core.logger import setup_logger
from shopify_utm.core.monitoring import set_export_context
from shopify_utm.server.auth import verify_api_key
from shopify_utm.server.dependencies import (
    get_bulk_service,
    get_order_fetcher,
    get_order_query_service,
    get_settings,
    parse_date_range,
)
from shopify_utm.services.bulk_export import BulkExportService
from shopify_utm.services.csv_renderer import parse_columns, render_csv
from shopify_utm.services.normalizer import sort_rows
from shopify_utm.services.order_fetcher import OrderFetcher, OrderQueryService

logger = setup_logger(__name__)

router = APIRouter(prefix="/api", tags=["orders"], dependencies=[Depends(verify_api_key)])


def columns_or_400(columns: Optional[str]):
    try:
        return parse_columns(columns)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("/orders")
async def get_orders(
    start: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    end: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    page: int = Query(1, description="Page number (1-based)"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, alias="pageSize", description="Rows per page (max 1000)"),
    max_results: Optional[int] = Query(None, alias="max", ge=1, description="Maximum orders to fetch"),
    service: OrderQueryService = Depends(get_order_query_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """
    Get UTM-attributed orders for a date range.

    Orders are fetched through the REST API (capped by ``max``), sorted newest
    first and paginated. ``shopify_total`` is Shopify's own count for the
    range, or null when the count could not be fetched.
    """
    date_range = parse_date_range(start, end)
    set_export_context("rest", start, end)

    result = await service.query(
        date_range,
        page=page,
        page_size=page_size,
        result_cap=max_results or settings.max_results,
    )
    return result.model_dump(by_alias=True)


@router.get("/export.csv")
async def export_csv(
    request: Request,
    start: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    end: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    columns: Optional[str] = Query(None, description="Comma-separated column list"),
    preview: int = Query(0, ge=0, description="Only export the first N rows (0 = all)"),
    use_bulk: bool = Query(False, alias="useBulk", description="Download the completed bulk export instead"),
    fetcher: OrderFetcher = Depends(get_order_fetcher),
    bulk_service: BulkExportService = Depends(get_bulk_service),
    settings: Settings = Depends(get_settings),
):
    """
    Export UTM-attributed orders as CSV.

    With ``useBulk=1`` the current bulk operation must be completed; the
    request is then redirected to ``/api/bulk/download``.
    """
    date_range = parse_date_range(start, end)
    selected = columns_or_400(columns)

    if use_bulk:
        await bulk_service.ensure_downloadable()

        params = {"preview": preview}
        if columns:
            params["columns"] = columns
        if request.query_params.get("api_key"):
            params["api_key"] = request.query_params["api_key"]
        return RedirectResponse(
            url=f"/api/bulk/download?{urlencode(params)}",
            status_code=status.HTTP_303_SEE_OTHER,
        )

    set_export_context("rest", start, end, preview=preview)
    result_cap = settings.export_max_results
    if preview > 0:
        # A preview only needs the first orders Shopify delivers
        result_cap = min(preview, result_cap)

    rows = sort_rows(await fetcher.fetch_all(date_range, result_cap))
    logger.info(f"Exporting {len(rows)} orders as CSV (preview={preview})")

    return StreamingResponse(
        render_csv(rows, selected, limit=preview),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{REST_EXPORT_FILENAME}"'},
    )
