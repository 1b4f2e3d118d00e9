"""
Centralized application constants.

Single point of truth for the attribution pipeline and the Shopify API
limits shared by the REST and bulk retrieval paths.
"""

# ==============================================================================
# ATTRIBUTION
# ==============================================================================

# Canonical attribution fields, in output order
UTM_FIELDS = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
)

# Query parameters carrying attribution start with this prefix
UTM_PREFIX = "utm_"

# Used to resolve relative landing/referring paths when no store is configured
DEFAULT_STORE_DOMAIN = "example.com"

# ==============================================================================
# SHOPIFY API
# ==============================================================================

# Maximum orders per REST page (Shopify limit is 250)
REST_PAGE_SIZE = 250

# REST status filter (include open, closed and cancelled orders)
REST_ORDER_STATUS = "any"

# Bulk operation statuses reported by currentBulkOperation
BULK_STATUS_NONE = "NONE"
BULK_STATUS_COMPLETED = "COMPLETED"
BULK_FAILED_STATUSES = ("FAILED", "CANCELED", "EXPIRED")

# ==============================================================================
# OUTPUT
# ==============================================================================

# Display format for created_at (created_at_raw keeps the ISO value)
DISPLAY_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Dashboard pagination bounds
DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 1000

# Columns written when the caller does not choose any
DEFAULT_CSV_COLUMNS = [
    "order_number",
    "created_at",
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
]

REST_EXPORT_FILENAME = "shopify-utm-export.csv"
BULK_EXPORT_FILENAME = "shopify-bulk-utm.csv"

