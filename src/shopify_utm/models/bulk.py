"""Pydantic models for Shopify bulk operations."""

from typing import Optional

from pydantic import BaseModel, Field

from shopify_utm.config.constants import (
    BULK_FAILED_STATUSES,
    BULK_STATUS_COMPLETED,
    BULK_STATUS_NONE,
)


class BulkOperationHandle(BaseModel):
    """Snapshot of the store's current bulk operation, as reported upstream."""

    id: Optional[str] = None
    status: str = BULK_STATUS_NONE
    error_code: Optional[str] = Field(None, alias="errorCode")
    url: Optional[str] = None
    object_count: Optional[int] = Field(None, alias="objectCount")

    class Config:
        extra = "ignore"
        populate_by_name = True

    @property
    def exists(self) -> bool:
        return self.status != BULK_STATUS_NONE

    @property
    def is_completed(self) -> bool:
        return self.status == BULK_STATUS_COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.status in BULK_FAILED_STATUSES
