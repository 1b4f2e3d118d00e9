"""CSV rendering for order exports.

Rows are written one line at a time so the bulk path can stream tens of
thousands of orders without buffering the whole file.
"""

import csv
import io
from contextlib import aclosing
from typing import Any, AsyncIterator, Iterable, Iterator, List, Optional

from shopify_utm.config.constants import DEFAULT_CSV_COLUMNS
from shopify_utm.models.order import OrderRow

ORDER_ROW_FIELDS = tuple(OrderRow.model_fields)


def parse_columns(value: Optional[str]) -> List[str]:
    """
    Parse a comma-separated column selection.

    Raises:
        ValueError: If a column is not an OrderRow field
    """
    if not value or not value.strip():
        return list(DEFAULT_CSV_COLUMNS)

    columns = [name.strip() for name in value.split(",") if name.strip()]
    unknown = [name for name in columns if name not in ORDER_ROW_FIELDS]
    if unknown:
        raise ValueError(f"Unknown columns: {', '.join(unknown)}")
    return columns


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def header_line(columns: List[str]) -> str:
    return ",".join(columns) + "\n"


def row_line(row: OrderRow, columns: List[str]) -> str:
    """Render one row with every value double-quoted."""
    out = io.StringIO()
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([_cell(getattr(row, column, None)) for column in columns])
    return out.getvalue()


def render_csv(rows: Iterable[OrderRow], columns: List[str], limit: int = 0) -> Iterator[str]:
    """Yield the header line, then one line per row (at most ``limit`` if positive)."""
    yield header_line(columns)
    for count, row in enumerate(rows, start=1):
        yield row_line(row, columns)
        if limit > 0 and count >= limit:
            break


async def stream_csv(
    rows: AsyncIterator[OrderRow],
    columns: List[str],
    limit: int = 0,
) -> AsyncIterator[str]:
    """
    Async variant of render_csv for streaming responses.

    The source iterator is closed on every exit path, including a client
    disconnect, which tears down any download feeding it.
    """
    yield header_line(columns)
    count = 0
    async with aclosing(rows):
        async for row in rows:
            yield row_line(row, columns)
            count += 1
            if limit > 0 and count >= limit:
                break
