"""
Pydantic schemas for generated documents (contracts and quotations)
Project: Dealer Console

The *PDFData models are fully resolved: every text field is present,
unresolved values are the literal "N/A".
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, computed_field

NOT_AVAILABLE = "N/A"


class ContractParty(BaseModel):
    """One side of the contract (buyer or seller)."""

    name: str = NOT_AVAILABLE
    address: str = NOT_AVAILABLE
    phone: str = NOT_AVAILABLE
    email: str = NOT_AVAILABLE
    tax_code: str = NOT_AVAILABLE
    representative: str = NOT_AVAILABLE
    id_number: str = NOT_AVAILABLE


class ContractLineItem(BaseModel):
    """A row of the goods table."""

    description: str
    detail: Optional[str] = None
    unit: str = "Chiếc"
    quantity: int = Field(1, ge=0)
    unit_price: Decimal = Decimal("0")

    @computed_field
    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class ContractPDFData(BaseModel):
    contract_code: str
    order_code: str = NOT_AVAILABLE
    location: str = NOT_AVAILABLE
    customer: ContractParty = Field(default_factory=ContractParty)
    dealership: ContractParty = Field(default_factory=ContractParty)
    items: list[ContractLineItem] = Field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    paid_amount: Decimal = Decimal("0")
    remaining_amount: Decimal = Decimal("0")
    payment_method: str = NOT_AVAILABLE
    delivery_address: Optional[str] = None
    delivery_date: Optional[str] = None
    notes: Optional[str] = None

    @computed_field
    @property
    def items_total(self) -> Decimal:
        """Grand total of the goods table."""
        return sum((item.line_total for item in self.items), Decimal("0"))


class QuotePDFData(BaseModel):
    quote_code: str
    customer: ContractParty = Field(default_factory=ContractParty)
    dealership: ContractParty = Field(default_factory=ContractParty)
    items: list[ContractLineItem] = Field(default_factory=list)
    discount_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    valid_until: str = NOT_AVAILABLE
    notes: Optional[str] = None

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))


@dataclass(frozen=True)
class GeneratedDocument:
    """A rendered document ready to be sent as a download."""

    filename: str
    content: bytes
    media_type: str = "application/pdf"

    @property
    def size(self) -> int:
        return len(self.content)
