"""
Order normalization.

Maps the two order representations Shopify hands us onto one OrderRow:

- REST orders (orders.json): snake_case keys, numeric ids
- GraphQL / bulk nodes: camelCase keys, gid:// ids

Field lookup goes through ORDER_FIELD_ALIASES so the set of accepted keys is
explicit. The shape's own aliases are tried first, then the other shape's.
"""

from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from shopify_utm.config.constants import DEFAULT_STORE_DOMAIN, DISPLAY_DATETIME_FORMAT
from shopify_utm.models.order import OrderRow
from shopify_utm.services.attribution import (
    extract_from_attributes,
    extract_from_url,
    merge_attribution,
)


class OrderShape(str, Enum):
    """Raw order representation."""

    REST = "rest"
    GRAPHQL = "graphql"


AliasTable = Dict[str, Dict[OrderShape, Tuple[str, ...]]]

ORDER_FIELD_ALIASES: AliasTable = {
    "id": {
        OrderShape.REST: ("id",),
        OrderShape.GRAPHQL: ("id",),
    },
    "order_number": {
        OrderShape.REST: ("order_number", "name"),
        OrderShape.GRAPHQL: ("orderNumber", "name"),
    },
    "created_at": {
        OrderShape.REST: ("created_at",),
        OrderShape.GRAPHQL: ("createdAt",),
    },
    "landing_site": {
        OrderShape.REST: ("landing_site",),
        OrderShape.GRAPHQL: ("landingSite", "landingSiteUrl"),
    },
    "referring_site": {
        OrderShape.REST: ("referring_site",),
        OrderShape.GRAPHQL: ("referringSite",),
    },
    "attributes": {
        OrderShape.REST: ("note_attributes", "attributes"),
        OrderShape.GRAPHQL: ("noteAttributes", "customAttributes", "attributes", "attrs"),
    },
}

# Keys that only appear on GraphQL / bulk nodes
_GRAPHQL_MARKERS = (
    "createdAt",
    "orderNumber",
    "landingSite",
    "referringSite",
    "noteAttributes",
    "customAttributes",
)


def detect_shape(raw: Mapping[str, Any]) -> OrderShape:
    """Tell a GraphQL/bulk node from a REST order."""
    if str(raw.get("id", "")).startswith("gid://"):
        return OrderShape.GRAPHQL
    if any(key in raw for key in _GRAPHQL_MARKERS):
        return OrderShape.GRAPHQL
    return OrderShape.REST


def _lookup(
    raw: Mapping[str, Any],
    field: str,
    shape: OrderShape,
    aliases: AliasTable,
) -> Any:
    """Return the first populated alias of ``field``, own shape first."""
    by_shape = aliases[field]
    keys = list(by_shape[shape])
    for other_shape, other_keys in by_shape.items():
        if other_shape is not shape:
            keys.extend(k for k in other_keys if k not in keys)

    for key in keys:
        value = raw.get(key)
        if value not in (None, "", [], {}):
            return value
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def normalize_order(
    raw: Mapping[str, Any],
    store_domain: str = DEFAULT_STORE_DOMAIN,
    display_tz: tzinfo = timezone.utc,
    aliases: AliasTable = ORDER_FIELD_ALIASES,
) -> OrderRow:
    """
    Build an OrderRow from a REST order or a GraphQL/bulk node.

    Attribution precedence is fixed for every field: landing URL first, then
    referring URL, then note/custom attributes.

    Args:
        raw: Order object as delivered by Shopify
        store_domain: Domain used to resolve relative landing paths
        display_tz: Timezone for the created_at display string
        aliases: Field alias table

    Returns:
        Normalized OrderRow
    """
    shape = detect_shape(raw)

    attribution = merge_attribution(
        extract_from_url(_lookup(raw, "landing_site", shape, aliases), store_domain),
        extract_from_url(_lookup(raw, "referring_site", shape, aliases), store_domain),
        extract_from_attributes(_lookup(raw, "attributes", shape, aliases)),
    )

    raw_created = _lookup(raw, "created_at", shape, aliases)
    created = parse_timestamp(raw_created)

    order_id = _lookup(raw, "id", shape, aliases)
    order_number = _lookup(raw, "order_number", shape, aliases)

    return OrderRow(
        id=order_id if order_id is not None else "",
        order_number=str(order_number) if order_number is not None else "",
        created_at=created.astimezone(display_tz).strftime(DISPLAY_DATETIME_FORMAT) if created else "",
        created_at_raw=raw_created if created else None,
        **attribution.model_dump(),
    )


def sort_rows(rows: Iterable[OrderRow]) -> List[OrderRow]:
    """Order rows newest first by created_at_raw; undated rows go last."""
    dated = []
    undated = []
    for row in rows:
        created = parse_timestamp(row.created_at_raw)
        if created is None:
            undated.append(row)
        else:
            dated.append((created, row))

    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [row for _, row in dated] + undated
