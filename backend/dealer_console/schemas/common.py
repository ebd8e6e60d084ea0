"""
Shared schemas: pagination metadata and paginated lists.
Project: Dealer Console
"""

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class Pagination(BaseModel):
    """Pagination metadata as returned by the dealership API."""

    page: int = Field(1, ge=1, description="Current page")
    limit: int = Field(10, ge=0, description="Items per page")
    total: int = Field(0, ge=0, description="Total number of items")
    pages: int = Field(0, ge=0, description="Total number of pages")

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_upstream(cls, raw: Optional[dict], item_count: int) -> "Pagination":
        """
        Normalizes the pagination shapes used by the backend
        ({page, limit, total, pages} or {page, limit, totalRecords, totalPages}).
        Missing metadata describes a single page holding every item.
        """
        if not raw:
            return cls(page=1, limit=item_count, total=item_count, pages=1 if item_count else 0)
        total = raw.get("total", raw.get("totalRecords", item_count)) or 0
        pages = raw.get("pages", raw.get("totalPages"))
        limit = raw.get("limit") or item_count
        if pages is None:
            pages = -(-total // limit) if limit else 0
        return cls(page=raw.get("page") or 1, limit=limit, total=total, pages=pages)


class Page(BaseModel, Generic[T]):
    """A list of items plus pagination metadata."""

    items: List[T] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
