"""
Pydantic schemas for debts
Project: Dealer Console

A debt is a ledger entry per debtor (customer, manufacturer or dealer),
tracked by the backend and only read here.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DebtStatus(str, Enum):
    ACTIVE = "active"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class DebtorType(str, Enum):
    CUSTOMER = "customer"
    MANUFACTURER = "manufacturer"
    DEALER = "dealer"


def derive_debt_status(
    total_amount: Decimal,
    paid_amount: Decimal,
    due_date: Optional[Union[date, datetime]] = None,
    today: Optional[date] = None,
    cancelled: bool = False,
) -> DebtStatus:
    """
    Status implied by the amounts:
    paid iff nothing remains, overdue iff the due date passed with a balance,
    partial when something was paid, active otherwise.
    """
    if cancelled:
        return DebtStatus.CANCELLED
    remaining = total_amount - paid_amount
    if remaining <= 0:
        return DebtStatus.PAID
    today = today or date.today()
    if due_date is not None:
        due = due_date.date() if isinstance(due_date, datetime) else due_date
        if due < today:
            return DebtStatus.OVERDUE
    if paid_amount > 0:
        return DebtStatus.PARTIAL
    return DebtStatus.ACTIVE


class Debt(BaseModel):
    """Debt record; remaining_amount is recomputed from the totals."""

    id: str = Field(..., alias="_id")
    debtor_id: Optional[str] = None
    debtor_type: Optional[DebtorType] = None
    debtor_name: Optional[str] = None
    debtor_email: Optional[str] = None
    debtor_phone: Optional[str] = None
    dealership_id: Optional[Union[str, dict[str, Any]]] = None
    customer_id: Optional[Union[str, dict[str, Any]]] = None
    manufacturer_id: Optional[Union[str, dict[str, Any]]] = None
    total_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    remaining_amount: Decimal = Decimal("0")
    currency: Optional[str] = "VND"
    status: DebtStatus = DebtStatus.ACTIVE
    due_date: Optional[datetime] = None
    description: Optional[str] = None
    order_ids: list[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("total_amount", "paid_amount", "remaining_amount", mode="before")
    @classmethod
    def none_to_zero(cls, v):
        return Decimal("0") if v is None else v

    @model_validator(mode="after")
    def recompute_remaining(self) -> "Debt":
        """
        remaining_amount = total_amount - paid_amount, and the status that
        follows from it. A cancelled debt stays cancelled.
        """
        self.remaining_amount = self.total_amount - self.paid_amount
        self.status = derive_debt_status(
            self.total_amount,
            self.paid_amount,
            due_date=self.due_date,
            cancelled=self.status == DebtStatus.CANCELLED,
        )
        return self

    @property
    def debtor_label(self) -> str:
        if self.debtor_name:
            return self.debtor_name
        for ref in (self.customer_id, self.manufacturer_id):
            if isinstance(ref, dict):
                name = ref.get("full_name") or ref.get("name")
                if name:
                    return name
        return "N/A"


class DebtFilters(BaseModel):
    """Query parameters passed through to the debt listings."""

    page: Optional[int] = Field(None, ge=1)
    limit: Optional[int] = Field(None, ge=1, le=200)
    q: Optional[str] = Field(None, description="Search by debtor name, email or phone")
    status: Optional[DebtStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_amount: Optional[Decimal] = Field(None, ge=0)
    max_amount: Optional[Decimal] = Field(None, ge=0)

    def to_query(self) -> dict[str, str]:
        """Non-empty filters, stringified for the query string."""
        query: dict[str, str] = {}
        for key, value in self.model_dump(exclude_none=True).items():
            if value == "":
                continue
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, date):
                value = value.isoformat()
            query[key] = str(value)
        return query


class DebtStats(BaseModel):
    total_debt: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    total_remaining: Decimal = Decimal("0")
    overdue_count: int = 0
    active_count: int = 0
    paid_count: int = 0
    customer_debt: Decimal = Decimal("0")
    manufacturer_debt: Decimal = Decimal("0")

    model_config = ConfigDict(extra="allow")
