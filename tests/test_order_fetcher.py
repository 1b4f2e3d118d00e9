"""Unit tests for REST pagination, the count probe and dashboard paging.

WHAT:
    Drive OrderFetcher / OrderQueryService against a fake Shopify REST API.

WHY:
    Pagination must follow rel="next" links in order, stop at the cap without
    extra requests, and fail as a whole on any bad page.
"""

from datetime import date

import httpx
import pytest

from conftest import SHOP, make_api_client, run
from shopify_utm.api.client import parse_next_link
from shopify_utm.core.exceptions import ConfigurationError, UpstreamRequestError
from shopify_utm.models.order import DateRange
from shopify_utm.services.order_fetcher import OrderFetcher, OrderQueryService

RANGE = DateRange(start=date(2024, 5, 1), end=date(2024, 5, 31))


def _order(n, created="2024-05-0{}T12:00:00Z"):
    return {
        "id": n,
        "order_number": 1000 + n,
        "created_at": created.format(n % 9 + 1),
        "landing_site": f"/?utm_source=src{n}",
    }


class _FakeOrdersAPI:
    """Serves ``pages`` of orders linked by rel="next" headers."""

    def __init__(self, pages, count=None, count_status=200):
        self.pages = pages
        self.count = count
        self.count_status = count_status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path.endswith("/orders/count.json"):
            if self.count_status != 200:
                return httpx.Response(self.count_status, text="count unavailable")
            return httpx.Response(200, json={} if self.count is None else {"count": self.count})

        index = int(request.url.params.get("page_info", "0"))
        headers = {}
        if index + 1 < len(self.pages):
            next_url = f"https://{SHOP}/admin/api/2025-07/orders.json?limit=250&page_info={index + 1}"
            headers["Link"] = f'<{next_url}>; rel="next"'
            if index > 0:
                headers["Link"] = f'<https://{SHOP}/prev>; rel="previous", ' + headers["Link"]
        return httpx.Response(200, json={"orders": self.pages[index]}, headers=headers)

    @property
    def page_requests(self):
        return [r for r in self.requests if r.url.path.endswith("/orders.json")]


def test_parse_next_link():
    header = '<https://s/prev?page_info=a>; rel="previous", <https://s/next?page_info=b>; rel="next"'
    assert parse_next_link(header) == "https://s/next?page_info=b"
    assert parse_next_link('<https://s/prev>; rel="previous"') is None
    assert parse_next_link(None) is None


def test_fetch_all_concatenates_pages_in_order():
    pages = [[_order(1), _order(2)], [_order(3)], [_order(4), _order(5)]]
    api = _FakeOrdersAPI(pages)
    fetcher = OrderFetcher(make_api_client(api), SHOP)

    rows = run(fetcher.fetch_all(RANGE, result_cap=100))

    assert [row.id for row in rows] == [1, 2, 3, 4, 5]
    assert rows[0].utm_source == "src1"
    assert len(api.page_requests) == 3


def test_first_request_carries_filters():
    api = _FakeOrdersAPI([[_order(1)]])
    run(OrderFetcher(make_api_client(api)).fetch_all(RANGE, result_cap=10))

    request = api.page_requests[0]
    assert request.headers["X-Shopify-Access-Token"] == "shpat_test"
    assert request.url.params["status"] == "any"
    assert request.url.params["limit"] == "250"
    assert request.url.params["created_at_min"] == "2024-05-01T00:00:00Z"
    assert request.url.params["created_at_max"] == "2024-05-31T23:59:59Z"


def test_fetch_all_stops_at_cap_without_extra_requests():
    pages = [[_order(1), _order(2)], [_order(3), _order(4)], [_order(5)]]
    api = _FakeOrdersAPI(pages)

    rows = run(OrderFetcher(make_api_client(api)).fetch_all(RANGE, result_cap=3))

    assert [row.id for row in rows] == [1, 2, 3]
    assert len(api.page_requests) == 2


def test_fetch_all_cap_on_page_boundary_does_not_request_next_page():
    pages = [[_order(1), _order(2)], [_order(3)]]
    api = _FakeOrdersAPI(pages)

    rows = run(OrderFetcher(make_api_client(api)).fetch_all(RANGE, result_cap=2))

    assert len(rows) == 2
    assert len(api.page_requests) == 1


def test_failed_page_aborts_whole_fetch():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(
                200,
                json={"orders": [_order(1)]},
                headers={"Link": f'<https://{SHOP}/admin/api/2025-07/orders.json?page_info=x>; rel="next"'},
            )
        return httpx.Response(429, text="Exceeded 2 calls per second")

    with pytest.raises(UpstreamRequestError) as exc_info:
        run(OrderFetcher(make_api_client(handler)).fetch_all(RANGE, result_cap=100))

    assert exc_info.value.status_code == 429
    assert exc_info.value.body == "Exceeded 2 calls per second"


def test_missing_configuration_fails_before_network():
    def handler(request):
        raise AssertionError("no request expected")

    fetcher = OrderFetcher(make_api_client(handler, shop=None))
    with pytest.raises(ConfigurationError):
        run(fetcher.fetch_all(RANGE, result_cap=10))


def test_count_returns_upstream_value():
    api = _FakeOrdersAPI([[]], count=42)
    assert run(OrderFetcher(make_api_client(api)).count(RANGE)) == 42


def test_count_without_value_is_an_error_not_zero():
    api = _FakeOrdersAPI([[]], count=None)
    with pytest.raises(UpstreamRequestError):
        run(OrderFetcher(make_api_client(api)).count(RANGE))


def test_query_sorts_newest_first_and_paginates():
    orders = [_order(n, created=f"2024-05-{n:02d}T08:00:00Z") for n in range(1, 8)]
    api = _FakeOrdersAPI([orders], count=7)
    service = OrderQueryService(OrderFetcher(make_api_client(api)))

    page = run(service.query(RANGE, page=2, page_size=3))

    assert page.total_fetched == 7
    assert page.shopify_total == 7
    assert [row.id for row in page.orders] == [4, 3, 2]
    assert page.model_dump(by_alias=True)["pageSize"] == 3


def test_query_survives_count_failure():
    api = _FakeOrdersAPI([[_order(1)]], count_status=500)
    service = OrderQueryService(OrderFetcher(make_api_client(api)))

    page = run(service.query(RANGE))

    assert page.total_fetched == 1
    assert page.shopify_total is None


def test_query_clamps_page_arguments():
    api = _FakeOrdersAPI([[_order(1)]], count=1)
    service = OrderQueryService(OrderFetcher(make_api_client(api)))

    page = run(service.query(RANGE, page=0, page_size=5000))

    assert page.page == 1
    assert page.page_size == 1000
