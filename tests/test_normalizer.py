"""Unit tests for order normalization across REST and GraphQL shapes."""

from zoneinfo import ZoneInfo

from shopify_utm.models.order import OrderRow
from shopify_utm.services.normalizer import (
    OrderShape,
    detect_shape,
    normalize_order,
    parse_timestamp,
    sort_rows,
)


def _precedence_order(landing="land", referring="ref", note="note"):
    return {
        "id": 1,
        "landing_site": f"/?utm_source={landing}" if landing else "/",
        "referring_site": f"https://ref.example/?utm_source={referring}" if referring else "",
        "note_attributes": [{"name": "utm_source", "value": note}],
    }


def test_detect_shape():
    assert detect_shape({"id": 1, "created_at": "x"}) is OrderShape.REST
    assert detect_shape({"id": "gid://shopify/Order/1"}) is OrderShape.GRAPHQL
    assert detect_shape({"id": 1, "createdAt": "x"}) is OrderShape.GRAPHQL


def test_landing_url_wins_then_referring_then_note():
    assert normalize_order(_precedence_order()).utm_source == "land"
    assert normalize_order(_precedence_order(landing=None)).utm_source == "ref"
    assert normalize_order(_precedence_order(landing=None, referring=None)).utm_source == "note"


def test_precedence_is_applied_per_field():
    row = normalize_order({
        "landing_site": "/?utm_source=ig",
        "referring_site": "https://x.example/?utm_medium=social&utm_source=other",
        "note_attributes": {"utm_campaign": "summer", "utm_medium": "note-medium"},
    })
    assert row.utm_source == "ig"
    assert row.utm_medium == "social"
    assert row.utm_campaign == "summer"
    assert row.utm_term == ""


def test_rest_order_is_normalized(rest_order):
    row = normalize_order(rest_order, "test-shop.myshopify.com")
    assert row.id == 5012345678
    assert row.order_number == "1001"
    assert row.created_at_raw == "2024-05-01T10:15:00-04:00"
    assert row.created_at == "2024-05-01 14:15:00"
    assert row.utm_source == "google"
    assert row.utm_medium == "cpc"
    assert row.utm_campaign == "spring"
    assert row.utm_term == "coffee mug"
    assert row.utm_content == ""


def test_graphql_node_is_normalized(graphql_node):
    row = normalize_order(graphql_node)
    assert row.id == "gid://shopify/Order/5012345678"
    assert row.order_number == "#1001"
    assert row.created_at_raw == "2024-05-01T14:15:00Z"
    assert row.created_at == "2024-05-01 14:15:00"
    assert row.utm_source == "google"
    assert row.utm_term == "coffee mug"


def test_normalization_is_idempotent(rest_order, graphql_node):
    assert normalize_order(rest_order) == normalize_order(rest_order)
    assert normalize_order(graphql_node) == normalize_order(graphql_node)


def test_order_number_falls_back_to_name_then_blank():
    assert normalize_order({"orderNumber": 7, "name": "#7"}).order_number == "7"
    assert normalize_order({"name": "#8"}).order_number == "#8"
    assert normalize_order({}).order_number == ""


def test_missing_or_bad_timestamp_leaves_display_blank():
    row = normalize_order({"id": 1, "created_at": "yesterday"})
    assert row.created_at == ""
    assert row.created_at_raw is None

    assert normalize_order({"id": 2}).created_at_raw is None


def test_created_at_uses_display_timezone():
    row = normalize_order({"createdAt": "2024-01-01T03:00:00Z"}, display_tz=ZoneInfo("America/New_York"))
    assert row.created_at == "2023-12-31 22:00:00"
    assert row.created_at_raw == "2024-01-01T03:00:00Z"


def test_every_row_has_string_attribution_fields():
    row = normalize_order({"id": 3, "landing_site": None, "note_attributes": None})
    for value in (row.utm_source, row.utm_medium, row.utm_campaign, row.utm_term, row.utm_content):
        assert value == ""


def test_parse_timestamp_handles_naive_and_zulu():
    assert parse_timestamp("2024-02-03T04:05:06").utcoffset().total_seconds() == 0
    assert parse_timestamp("2024-02-03T04:05:06Z") == parse_timestamp("2024-02-03T04:05:06+00:00")
    assert parse_timestamp(None) is None


def test_sort_rows_orders_by_raw_timestamp_not_display_string():
    # Display strings in different zones would sort the other way round
    early = OrderRow(id=1, created_at="2024-05-01 23:00:00", created_at_raw="2024-05-01T23:00:00+09:00")
    late = OrderRow(id=2, created_at="2024-05-01 16:00:00", created_at_raw="2024-05-01T16:00:00Z")
    undated = OrderRow(id=3)

    assert [row.id for row in sort_rows([undated, early, late])] == [2, 1, 3]
