"""
Pydantic schemas for orders
Project: Dealer Console

Contains:
- Enums: OrderStatus, OrderPaymentMethod
- OrderItem with its options and accessories
- Order, as returned by the dealership API
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# -------------------------------------------------------------------
# Enum
# -------------------------------------------------------------------

class OrderStatus(str, Enum):
    """
    Order lifecycle statuses.

    The backend uses two spellings for the deposit and fully-paid states
    (deposit_paid/halfPayment, fully_paid/fullyPayment); both are accepted.
    """
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DEPOSIT_PAID = "deposit_paid"
    HALF_PAYMENT = "halfPayment"
    WAITING_VEHICLE_REQUEST = "waiting_vehicle_request"
    VEHICLE_READY = "vehicle_ready"
    FULLY_PAID = "fully_paid"
    FULLY_PAYMENT = "fullyPayment"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CLOSED = "closed"
    CANCELLED = "cancelled"


DEPOSIT_STATUSES = frozenset({OrderStatus.DEPOSIT_PAID.value, OrderStatus.HALF_PAYMENT.value})
FULLY_PAID_STATUSES = frozenset({OrderStatus.FULLY_PAID.value, OrderStatus.FULLY_PAYMENT.value})


def is_deposit_status(status: Optional[str]) -> bool:
    return status in DEPOSIT_STATUSES


def is_fully_paid_status(status: Optional[str]) -> bool:
    return status in FULLY_PAID_STATUSES


class OrderPaymentMethod(str, Enum):
    """How the customer settles the order as a whole."""
    CASH = "cash"
    INSTALLMENT = "installment"


# -------------------------------------------------------------------
# Items
# -------------------------------------------------------------------

class OrderItemOption(BaseModel):
    option_id: Optional[str] = None
    name: Optional[str] = None
    price: Decimal = Decimal("0")

    model_config = ConfigDict(extra="allow")


class OrderItemAccessory(BaseModel):
    accessory_id: Optional[str] = None
    name: Optional[str] = None
    price: Decimal = Decimal("0")
    quantity: int = 1

    model_config = ConfigDict(extra="allow")


class OrderItem(BaseModel):
    """A line of the order: one vehicle model in one color, with extras."""

    vehicle_id: Optional[Union[str, dict[str, Any]]] = None
    vehicle_name: Optional[str] = None
    vehicle_price: Optional[Decimal] = None
    color: Optional[str] = None
    quantity: int = Field(1, ge=0)
    discount: Decimal = Decimal("0")
    promotion_id: Optional[Union[str, dict[str, Any]]] = None
    options: list[OrderItemOption] = Field(default_factory=list)
    accessories: list[OrderItemAccessory] = Field(default_factory=list)
    final_amount: Decimal = Decimal("0")

    model_config = ConfigDict(extra="allow")

    @field_validator("discount", "final_amount", mode="before")
    @classmethod
    def none_to_zero(cls, v):
        return Decimal("0") if v is None else v


# -------------------------------------------------------------------
# Order
# -------------------------------------------------------------------

class Order(BaseModel):
    """
    An order as returned by the dealership API.

    customer_id / dealership_id may be bare ids or populated objects;
    services/enrichment_service.py normalizes them before use.
    """

    id: str = Field(..., alias="_id", description="Internal order id")
    code: str = Field("", description="Human readable order code")
    customer_id: Optional[Union[str, dict[str, Any]]] = None
    customer: Optional[dict[str, Any]] = None
    dealership_id: Optional[Union[str, dict[str, Any]]] = None
    dealership: Optional[dict[str, Any]] = None
    salesperson_id: Optional[Union[str, dict[str, Any]]] = None
    items: list[OrderItem] = Field(default_factory=list)
    final_amount: Decimal = Field(Decimal("0"), ge=0, description="Total contract value")
    paid_amount: Decimal = Field(Decimal("0"), ge=0, description="Sum of non-deleted payments")
    payment_method: Optional[str] = None
    status: str = OrderStatus.PENDING.value
    notes: Optional[str] = None
    delivery: Optional[dict[str, Any]] = None
    contract: Optional[dict[str, Any]] = None
    contract_signed: bool = False

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("final_amount", "paid_amount", mode="before")
    @classmethod
    def none_to_zero(cls, v):
        return Decimal("0") if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def status_to_str(cls, v):
        if isinstance(v, Enum):
            return v.value
        return v or OrderStatus.PENDING.value

    @computed_field
    @property
    def remaining_amount(self) -> Decimal:
        """final_amount - paid_amount, never below zero."""
        return max(self.final_amount - self.paid_amount, Decimal("0"))

    @property
    def dealership_ref_id(self) -> Optional[str]:
        """The dealership id whether the reference is a string or a populated object."""
        for candidate in (self.dealership_id, self.dealership):
            if isinstance(candidate, str) and candidate:
                return candidate
            if isinstance(candidate, dict):
                ref = candidate.get("_id") or candidate.get("id")
                if ref:
                    return str(ref)
        return None
