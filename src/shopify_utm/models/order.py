"""Pydantic models for order data."""

from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, Field, model_validator


class AttributionRecord(BaseModel):
    """UTM values found in one source field of an order."""

    utm_source: str = ""
    utm_medium: str = ""
    utm_campaign: str = ""
    utm_term: str = ""
    utm_content: str = ""


class OrderRow(BaseModel):
    """Canonical order row shared by the REST and bulk retrieval paths."""

    id: Union[int, str] = ""
    order_number: str = ""
    created_at: str = ""
    created_at_raw: Optional[str] = None
    utm_source: str = ""
    utm_medium: str = ""
    utm_campaign: str = ""
    utm_term: str = ""
    utm_content: str = ""

    class Config:
        frozen = True


class DateRange(BaseModel):
    """Inclusive calendar date range requested by the operator."""

    start: date
    end: date

    @model_validator(mode="after")
    def check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("start must be on or before end")
        return self

    @property
    def created_at_min(self) -> str:
        """Start of the first day (UTC)."""
        return f"{self.start.isoformat()}T00:00:00Z"

    @property
    def created_at_max(self) -> str:
        """Last second of the final day (UTC)."""
        return f"{self.end.isoformat()}T23:59:59Z"


class OrdersPage(BaseModel):
    """One dashboard page of normalized orders."""

    total_fetched: int
    page: int
    page_size: int = Field(serialization_alias="pageSize")
    orders: List[OrderRow] = Field(default_factory=list)
    shopify_total: Optional[int] = None
