"""
Read services: payments, order history and debts
Project: Dealer Console

Side-effect-free queries against the dealership API. Filters are passed
through unchanged; upstream errors propagate with the backend message.
"""

import logging
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel

from dealer_console.schemas.common import Page, Pagination
from dealer_console.schemas.debt import Debt, DebtFilters, DebtStats
from dealer_console.schemas.history import (
    OrderStatusLog,
    OrderTimeline,
    OrderTimelineEntry,
)
from dealer_console.schemas.payment import Payment
from dealer_console.services.api_client import DealerApiClient, unwrap_data, unwrap_entity

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def split_list_body(body: Any, keys: tuple[str, ...] = ("items",)) -> tuple[list, Optional[dict]]:
    """
    Items and raw pagination from the list shapes used by the backend:
    a bare list, {data: [...], pagination}, {data: {data: [...], pagination}}
    or {data: {<key>: [...], pagination}}.
    """
    data = unwrap_data(body)
    pagination = body.get("pagination") if isinstance(body, dict) else None

    if isinstance(data, list):
        return data, pagination
    if isinstance(data, dict):
        pagination = data.get("pagination") or pagination
        for key in ("data",) + keys:
            value = data.get(key)
            if isinstance(value, list):
                return value, pagination
    return [], pagination


def to_page(body: Any, model: Type[ModelT], keys: tuple[str, ...] = ("items",)) -> Page[ModelT]:
    raw_items, raw_pagination = split_list_body(body, keys)
    items = [model.model_validate(raw) for raw in raw_items]
    return Page[model](
        items=items,
        pagination=Pagination.from_upstream(raw_pagination, len(items)),
    )


class PaymentHistoryService:
    """Payment records of an order."""

    def __init__(self, client: DealerApiClient):
        self.client = client

    async def list_for_order(self, order_id: str) -> Page[Payment]:
        body = await self.client.get(f"/api/payments/order/{order_id}")
        page = to_page(body, Payment, keys=("payments",))
        # Soft-deleted payments do not count towards the ledger
        page.items = [p for p in page.items if not p.is_deleted]
        logger.debug(f"Loaded {len(page.items)} payments for order {order_id}")
        return page

    async def get_payment(self, payment_id: str) -> Payment:
        body = await self.client.get(f"/api/payments/{payment_id}")
        return Payment.model_validate(unwrap_entity(body, "payment"))


class OrderHistoryService:
    """Status-change audit trail of an order (append-only, read only)."""

    def __init__(self, client: DealerApiClient):
        self.client = client

    async def timeline(self, order_id: str) -> OrderTimeline:
        """
        Ordered timeline of status changes.

        Accepts {order_id, current_status, timeline: [...]} or a bare list of entries.
        """
        body = await self.client.get(f"/api/order-status-logs/orders/{order_id}/history")
        data = unwrap_data(body)
        if isinstance(data, list):
            return OrderTimeline(
                order_id=order_id,
                timeline=[OrderTimelineEntry.model_validate(e) for e in data],
            )
        data = data if isinstance(data, dict) else {}
        return OrderTimeline(
            order_id=str(data.get("order_id") or order_id),
            current_status=data.get("current_status"),
            current_delivery_status=data.get("current_delivery_status"),
            timeline=[OrderTimelineEntry.model_validate(e) for e in data.get("timeline") or []],
        )

    async def status_logs(self, order_id: str, page: int = 1, limit: int = 20) -> Page[OrderStatusLog]:
        body = await self.client.get(
            f"/api/order-status-logs/orders/{order_id}",
            params={"page": page, "limit": limit},
        )
        return to_page(body, OrderStatusLog, keys=("logs",))


class DebtService:
    """
    Debt listings and details.

    Customer debts are owed by customers to dealerships, manufacturer debts
    by dealerships to the manufacturer.
    """

    def __init__(self, client: DealerApiClient):
        self.client = client

    async def _list(self, path: str, filters: Optional[DebtFilters]) -> Page[Debt]:
        params = filters.to_query() if filters else {}
        body = await self.client.get(path, params=params or None)
        return to_page(body, Debt, keys=("debts",))

    async def customer_debts(self, filters: Optional[DebtFilters] = None) -> Page[Debt]:
        return await self._list("/api/debts/customers", filters)

    async def manufacturer_debts(self, filters: Optional[DebtFilters] = None) -> Page[Debt]:
        return await self._list("/api/debts/manufacturers", filters)

    async def get_debt(self, debt_id: str) -> Debt:
        body = await self.client.get(f"/api/debts/{debt_id}")
        return Debt.model_validate(unwrap_entity(body, "debt"))

    async def manufacturer_debt(self, debt_id: str) -> Debt:
        body = await self.client.get(f"/api/debts/manufacturers/{debt_id}")
        return Debt.model_validate(unwrap_entity(body, "debt"))

    async def customer_debt_by_order(self, order_id: str) -> Debt:
        body = await self.client.get(f"/api/debts/customers/order/{order_id}")
        return Debt.model_validate(unwrap_entity(body, "debt"))

    async def debt_stats(self) -> DebtStats:
        body = await self.client.get("/api/debts/stats")
        data = unwrap_data(body)
        return DebtStats.model_validate(data if isinstance(data, dict) else {})
