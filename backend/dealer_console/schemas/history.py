"""
Pydantic schemas for the order status audit log.
Project: Dealer Console

Entries are append-only: they are read, never modified.
"""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class StatusChange(BaseModel):
    from_status: Optional[str] = Field(None, alias="from")
    to_status: Optional[str] = Field(None, alias="to")

    model_config = ConfigDict(populate_by_name=True)


class OrderTimelineEntry(BaseModel):
    """One step of the order timeline."""

    id: Optional[str] = None
    timestamp: Optional[datetime] = None
    status_change: Optional[StatusChange] = None
    delivery_status_change: Optional[StatusChange] = None
    current_status: Optional[str] = None
    current_delivery_status: Optional[str] = None
    changed_by: Optional[Union[str, dict[str, Any]]] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    payment_info: Optional[dict[str, Any]] = None
    delivery_info: Optional[dict[str, Any]] = None
    is_current: bool = False

    model_config = ConfigDict(extra="allow")

    @property
    def changed_by_label(self) -> str:
        if isinstance(self.changed_by, dict):
            return self.changed_by.get("full_name") or self.changed_by.get("email") or "N/A"
        return self.changed_by or "N/A"


class OrderTimeline(BaseModel):
    order_id: str
    current_status: Optional[str] = None
    current_delivery_status: Optional[str] = None
    timeline: list[OrderTimelineEntry] = Field(default_factory=list)


class OrderStatusLog(BaseModel):
    """Raw audit record: old/new status, actor, reason, timestamp."""

    id: str = Field(..., alias="_id")
    order_id: Optional[str] = None
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    old_delivery_status: Optional[str] = None
    new_delivery_status: Optional[str] = None
    changed_by: Optional[Union[str, dict[str, Any]]] = None
    changed_by_name: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")
