"""Shopify Admin API endpoint paths."""

ORDERS = "/admin/api/{version}/orders.json"
ORDERS_COUNT = "/admin/api/{version}/orders/count.json"
GRAPHQL = "/admin/api/{version}/graphql.json"
