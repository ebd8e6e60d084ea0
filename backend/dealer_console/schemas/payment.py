"""
Pydantic schemas for payments
Project: Dealer Console

Contains:
- Enums: PaymentMethod, DepositResult
- Payment, as recorded by the backend ledger
- Requests for the two payment phases (deposit, final payment)
- PaymentSummary and the outcomes of both phases
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dealer_console.schemas.order import Order


# -------------------------------------------------------------------
# Enum
# -------------------------------------------------------------------

class PaymentMethod(str, Enum):
    """Supported payment methods."""
    CASH = "cash"
    BANK = "bank"
    QR = "qr"
    CARD = "card"


class DepositResult(str, Enum):
    """How a deposit submission ended."""
    RESERVED = "reserved"                    # vehicle reserved from dealer stock
    RESTOCK_REQUESTED = "restock_requested"  # manufacturer restock request created
    PENDING_CHECK = "pending_check"          # stock shortage not resolved yet


# -------------------------------------------------------------------
# Payment records
# -------------------------------------------------------------------

class Payment(BaseModel):
    """A payment; immutable once created, soft-deletable."""

    id: str = Field(..., alias="_id")
    order_id: Optional[str] = None
    customer_id: Optional[str] = None
    amount: Decimal = Field(..., gt=0, description="Amount paid")
    method: Optional[str] = None
    reference: Optional[str] = None
    paid_at: Optional[datetime] = None
    notes: Optional[str] = None
    is_deleted: bool = False

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("order_id", "customer_id", mode="before")
    @classmethod
    def reference_to_id(cls, v):
        if isinstance(v, dict):
            return v.get("_id") or v.get("id")
        return v


# -------------------------------------------------------------------
# Requests
# -------------------------------------------------------------------

class DepositRequest(BaseModel):
    """
    Deposit submission. The amount is derived from the percentage,
    the bounds are enforced by the payment service.
    """

    deposit_percent: Decimal = Field(
        ...,
        description="Share of the contract value paid as deposit (10-30 by default)",
    )
    method: PaymentMethod = Field(..., description="Payment method")
    notes: Optional[str] = Field(None, max_length=1000, description="Free notes")


class FinalPaymentRequest(BaseModel):
    """Final payment; the amount is always the full remaining balance."""

    method: PaymentMethod = Field(..., description="Payment method")
    notes: Optional[str] = Field(None, max_length=1000, description="Free notes")


# -------------------------------------------------------------------
# Derived state and outcomes
# -------------------------------------------------------------------

class PaymentSummary(BaseModel):
    """Amounts and available actions, derived from an order."""

    order_id: str
    order_code: str
    status: str
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    payment_progress: int = Field(..., ge=0, le=100)
    is_first_payment: bool
    can_deposit: bool
    can_final_payment: bool
    deposit_min_percent: Decimal
    deposit_max_percent: Decimal


class GeneratedDocumentInfo(BaseModel):
    """Metadata (and the content, base64) of a document produced by a payment."""

    filename: str
    media_type: str = "application/pdf"
    size_bytes: int
    content_base64: str


class DepositOutcome(BaseModel):
    result: DepositResult
    message: str
    warnings: list[str] = Field(default_factory=list)
    deposit_amount: Decimal
    has_stock: Optional[bool] = None
    order: Optional[Order] = None
    payments: list[Payment] = Field(default_factory=list)


class FinalPaymentOutcome(BaseModel):
    message: str
    warnings: list[str] = Field(default_factory=list)
    charged_amount: Decimal
    order: Order
    fully_paid: bool
    contract: Optional[GeneratedDocumentInfo] = None
    contract_error: Optional[str] = None
    payments: list[Payment] = Field(default_factory=list)
