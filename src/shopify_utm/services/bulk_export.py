"""
Bulk export service.

Runs the three phases of a Shopify bulk operation export:

1. start: submit bulkOperationRunQuery for the date range
2. status: poll currentBulkOperation
3. stream_rows: download the gzip JSONL result and normalize it line by line

Shopify keeps a single "current" bulk operation per store and exposes no
handle to claim it, so status() reports whatever operation is current. A
second caller starting an export replaces the one the first caller is
waiting on.
"""

import json
import zlib
from contextlib import aclosing
from datetime import timezone, tzinfo
from typing import Any, AsyncIterator, List, NamedTuple, Optional

import httpx

from shopify_utm.api.client import ShopifyAPIClient
from shopify_utm.config.constants import DEFAULT_STORE_DOMAIN
from shopify_utm.core.exceptions import NotReadyError, UpstreamJobError
from shopify_utm.core.logger import setup_logger
from shopify_utm.models.bulk import BulkOperationHandle
from shopify_utm.models.order import DateRange, OrderRow
from shopify_utm.services.normalizer import normalize_order

logger = setup_logger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

CURRENT_BULK_OPERATION_QUERY = """
{
  currentBulkOperation {
    id
    status
    errorCode
    url
    objectCount
  }
}
"""


def build_bulk_query(date_range: DateRange) -> str:
    """Build the bulkOperationRunQuery mutation for a date range (inclusive)."""
    search = (
        f"created_at:>='{date_range.created_at_min}' "
        f"created_at:<='{date_range.created_at_max}'"
    )
    return f'''
mutation {{
  bulkOperationRunQuery(
    query: """
    {{
      orders(query: "{search}") {{
        edges {{
          node {{
            id
            name
            createdAt
            landingSite
            referringSite
            customAttributes {{
              key
              value
            }}
          }}
        }}
      }}
    }}
    """
  ) {{
    bulkOperation {{
      id
      status
    }}
    userErrors {{
      field
      message
    }}
  }}
}}
'''


class ParsedLine(NamedTuple):
    """Outcome of parsing one JSONL line."""

    ok: bool
    value: Any = None
    error: Optional[str] = None


def parse_json_line(line: bytes) -> ParsedLine:
    """Parse one JSONL line without raising."""
    try:
        return ParsedLine(True, json.loads(line))
    except (ValueError, UnicodeDecodeError, RecursionError) as e:
        return ParsedLine(False, error=str(e))


def expand_line(value: Any) -> List[dict]:
    """
    Extract order nodes from one parsed bulk line.

    Accepts a wrapped connection ({"orders": {"edges": [{"node": ...}]}}),
    a wrapped node ({"node": ...}) or a bare order object. Child records
    (lines carrying "__parentId") and non-objects yield nothing.
    """
    if not isinstance(value, dict):
        return []

    orders = value.get("orders")
    if isinstance(orders, dict) and isinstance(orders.get("edges"), list):
        return [
            edge["node"]
            for edge in orders["edges"]
            if isinstance(edge, dict) and isinstance(edge.get("node"), dict)
        ]

    if isinstance(value.get("node"), dict):
        return [value["node"]]

    if "__parentId" in value:
        return []

    return [value]


async def iter_lines(chunks: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
    """
    Decompress a byte stream incrementally and yield complete lines.

    Gzip is detected from the magic bytes; an uncompressed body passes
    through unchanged.
    """
    decompressor = None
    head = b""
    buffer = b""

    async with aclosing(chunks):
        async for chunk in chunks:
            if decompressor is None:
                head += chunk
                if len(head) < len(GZIP_MAGIC):
                    continue
                if head.startswith(GZIP_MAGIC):
                    decompressor = zlib.decompressobj(16 + zlib.MAX_WBITS)
                else:
                    decompressor = _Passthrough()
                chunk, head = head, b""

            buffer += decompressor.decompress(chunk)
            *lines, buffer = buffer.split(b"\n")
            for line in lines:
                yield line

    if decompressor is None:
        buffer = head
    else:
        buffer += decompressor.flush()
    for line in buffer.split(b"\n"):
        yield line


class _Passthrough:
    """Stand-in decompressor for uncompressed bodies."""

    def decompress(self, data: bytes) -> bytes:
        return data

    def flush(self) -> bytes:
        return b""


class BulkExportService:
    """Starts, polls and downloads Shopify bulk order exports."""

    def __init__(
        self,
        api_client: ShopifyAPIClient,
        store_domain: Optional[str] = None,
        display_tz: tzinfo = timezone.utc,
    ):
        """Initialize service with API client."""
        self.api_client = api_client
        self.store_domain = store_domain or DEFAULT_STORE_DOMAIN
        self.display_tz = display_tz

    async def start(self, date_range: DateRange) -> BulkOperationHandle:
        """
        Submit a bulk export for the date range. Does not wait for completion.

        Raises:
            UpstreamJobError: If Shopify reports userErrors
        """
        logger.info(
            f"Starting bulk export {date_range.created_at_min} - {date_range.created_at_max}"
        )
        data = await self.api_client.graphql(build_bulk_query(date_range))
        result = data.get("bulkOperationRunQuery") or {}

        user_errors = result.get("userErrors") or []
        if user_errors:
            logger.error(f"Bulk operation rejected: {user_errors}")
            raise UpstreamJobError("Bulk operation rejected", errors=user_errors)

        operation = result.get("bulkOperation")
        if not operation:
            raise UpstreamJobError("Bulk operation was not created")

        handle = BulkOperationHandle.model_validate(operation)
        logger.info(f"Bulk operation {handle.id} started ({handle.status})")
        return handle

    async def status(self) -> BulkOperationHandle:
        """Fetch the store's current bulk operation (NONE if there is none)."""
        data = await self.api_client.graphql(CURRENT_BULK_OPERATION_QUERY)
        operation = data.get("currentBulkOperation")
        if not operation:
            return BulkOperationHandle()
        return BulkOperationHandle.model_validate(operation)

    async def ensure_downloadable(self) -> BulkOperationHandle:
        """
        Return the current operation if its result can be downloaded.

        Raises:
            NotReadyError: No operation yet, or still running
            UpstreamJobError: Operation failed, was cancelled or has no result URL
        """
        handle = await self.status()

        if not handle.exists:
            raise NotReadyError("No bulk operation found. Start one first.", handle.status)
        if handle.is_failed:
            raise UpstreamJobError(
                f"Bulk operation {handle.status.lower()}",
                error_code=handle.error_code,
                status=handle.status,
            )
        if not handle.is_completed:
            raise NotReadyError(f"Bulk operation not ready. Status: {handle.status}", handle.status)
        if not handle.url and handle.object_count != 0:
            raise UpstreamJobError(
                "Bulk operation completed but no URL returned.", status=handle.status
            )
        return handle

    async def open_result(self, handle: BulkOperationHandle) -> Optional[httpx.Response]:
        """
        Open the result file of a completed operation (None when it has no file).

        Raises:
            UpstreamRequestError: If the result URL answers with an error
        """
        if not handle.url:
            return None
        return await self.api_client.open_download(handle.url)

    async def stream_rows(
        self,
        preview_limit: int = 0,
        handle: Optional[BulkOperationHandle] = None,
        download: Optional[httpx.Response] = None,
    ) -> AsyncIterator[OrderRow]:
        """
        Download the completed result and yield normalized rows in file order.

        Each call performs a fresh download unless an already opened one is
        passed in. Malformed lines are skipped. With a positive preview_limit
        the download is closed as soon as that many rows have been produced.

        Args:
            preview_limit: Maximum rows to yield (0 = all)
            handle: Result of ensure_downloadable(), fetched if omitted
            download: Response from open_result(), opened here if omitted
        """
        if download is None:
            if handle is None:
                handle = await self.ensure_downloadable()
            download = await self.open_result(handle)
        if download is None:
            logger.info("Bulk operation completed with no objects")
            return

        emitted = 0
        skipped = 0
        try:
            chunks = self.api_client.iter_download(download)
            async with aclosing(iter_lines(chunks)) as lines:
                async for line in lines:
                    if not line.strip():
                        continue

                    parsed = parse_json_line(line)
                    if not parsed.ok:
                        skipped += 1
                        logger.debug(f"Skipping malformed bulk line: {parsed.error}")
                        continue

                    for node in expand_line(parsed.value):
                        yield normalize_order(node, self.store_domain, self.display_tz)
                        emitted += 1
                        if preview_limit > 0 and emitted >= preview_limit:
                            return
        finally:
            await download.aclose()
            logger.info(f"Bulk download finished: {emitted} rows, {skipped} malformed lines skipped")
