"""
Bulk Export API Routes

Start, poll and download Shopify bulk operation exports.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from shopify_utm.config.constants import BULK_EXPORT_FILENAME
from shopify_utm.core.logger import setup_logger
from shopify_utm.core.monitoring import set_export_context
from shopify_utm.server.auth import verify_api_key
from shopify_utm.server.dependencies import get_bulk_service, parse_date_range
from shopify_utm.server.order_routes import columns_or_400
from shopify_utm.services.bulk_export import BulkExportService
from shopify_utm.services.csv_renderer import stream_csv

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/bulk", tags=["bulk"], dependencies=[Depends(verify_api_key)])


@router.post("/start")
async def start_bulk(
    body: Optional[Dict[str, Any]] = Body(None),
    start: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    end: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    service: BulkExportService = Depends(get_bulk_service),
) -> Dict[str, Any]:
    """
    Start a bulk export for a date range.

    Dates may be sent in the JSON body or as query parameters. Returns as
    soon as Shopify accepts the operation; poll /api/bulk/status afterwards.

    Body:
        {
            "start": "YYYY-MM-DD",
            "end": "YYYY-MM-DD"
        }
    """
    body = body or {}
    start = body.get("start") or start
    end = body.get("end") or end
    date_range = parse_date_range(start, end)
    set_export_context("bulk", start, end)

    handle = await service.start(date_range)
    return {"started": True, "id": handle.id, "status": handle.status}


@router.get("/status")
async def bulk_status(service: BulkExportService = Depends(get_bulk_service)) -> Dict[str, Any]:
    """Get the store's current bulk operation (status NONE if there is none)."""
    handle = await service.status()
    return handle.model_dump(by_alias=True)


@router.get("/download")
async def bulk_download(
    preview: int = Query(0, ge=0, description="Only export the first N rows (0 = all)"),
    columns: Optional[str] = Query(None, description="Comma-separated column list"),
    service: BulkExportService = Depends(get_bulk_service),
):
    """
    Download the completed bulk export as CSV.

    The result file is opened (and its status checked) before the response
    starts, then decompressed and converted while it streams; with
    ``preview`` the download stops after that many rows.
    """
    selected = columns_or_400(columns)
    handle = await service.ensure_downloadable()
    set_export_context("bulk", preview=preview, object_count=handle.object_count)

    # Upstream failures must surface before the 200 and CSV headers go out
    download = await service.open_result(handle)
    logger.info(f"Streaming bulk export {handle.id} ({handle.object_count} objects, preview={preview})")

    return StreamingResponse(
        stream_csv(service.stream_rows(preview, handle, download), selected),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{BULK_EXPORT_FILENAME}"'},
        background=BackgroundTask(download.aclose) if download is not None else None,
    )
