"""
UTM attribution extraction.

Pure helpers that read utm_* values out of landing/referring URLs and out of
order note attributes. Input comes from browsers and customers, so nothing
here raises: unusable input produces an empty AttributionRecord.
"""

from typing import Any, Mapping, Optional
from urllib.parse import SplitResult, parse_qsl, urljoin, urlsplit

from shopify_utm.config.constants import DEFAULT_STORE_DOMAIN, UTM_FIELDS, UTM_PREFIX
from shopify_utm.core.logger import setup_logger
from shopify_utm.models.order import AttributionRecord

logger = setup_logger(__name__)


def _split_url(url: str, store_domain: str) -> Optional[SplitResult]:
    """Split a URL, resolving store-relative paths. None if unparseable."""
    try:
        if not url.startswith("http"):
            url = urljoin(f"https://{store_domain}/", url)
        return urlsplit(url)
    except ValueError:
        return None


def extract_from_url(
    url: Optional[str],
    store_domain: str = DEFAULT_STORE_DOMAIN,
) -> AttributionRecord:
    """
    Extract utm_* query parameters from a landing or referring URL.

    Args:
        url: Absolute URL or store-relative path (e.g. "/?utm_source=ig")
        store_domain: Domain used to resolve relative paths

    Returns:
        AttributionRecord with the parameters found, "" for the rest
    """
    if not url or not isinstance(url, str):
        return AttributionRecord()

    parts = _split_url(url.strip(), store_domain)
    if parts is None:
        logger.debug(f"Unparseable attribution URL: {url[:100]}")
        return AttributionRecord()

    values = {}
    for key, value in parse_qsl(parts.query):
        if key.startswith(UTM_PREFIX) and key in UTM_FIELDS:
            values[key] = value

    return AttributionRecord(**values)


def _iter_attribute_pairs(attributes: Any):
    if isinstance(attributes, Mapping):
        yield from attributes.items()
    elif isinstance(attributes, (list, tuple)):
        for item in attributes:
            if isinstance(item, Mapping):
                yield item.get("name") or item.get("key") or "", item.get("value")


def extract_from_attributes(attributes: Any) -> AttributionRecord:
    """
    Extract utm_* values from note/custom attributes.

    Accepts a list of {"name"|"key", "value"} pairs or a plain mapping.
    Keys are matched case-insensitively by substring, so "UTM_Source" and
    "_utm_source_first" both feed utm_source. The first non-empty value for
    a field wins.
    """
    values = {}
    if not attributes:
        return AttributionRecord()

    for name, value in _iter_attribute_pairs(attributes):
        if not value:
            continue
        key = str(name).lower()
        for field in UTM_FIELDS:
            if field in key and field not in values:
                values[field] = str(value)

    return AttributionRecord(**values)


def merge_attribution(*records: AttributionRecord) -> AttributionRecord:
    """Combine records field by field; earlier records take precedence."""
    merged = {}
    for field in UTM_FIELDS:
        merged[field] = next(
            (getattr(record, field) for record in records if getattr(record, field)),
            "",
        )
    return AttributionRecord(**merged)
