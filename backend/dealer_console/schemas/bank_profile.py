"""
Pydantic schemas for bank (installment financing) profiles
Project: Dealer Console

One profile per order; its status only moves forward along the
approval pipeline.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BankProfileStatus(str, Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    FUNDED = "funded"
    CANCELED = "canceled"


# Position along the approval pipeline; rejected/canceled are exits
PIPELINE_ORDER = {
    BankProfileStatus.PENDING: 0,
    BankProfileStatus.SUBMITTED: 1,
    BankProfileStatus.UNDER_REVIEW: 2,
    BankProfileStatus.APPROVED: 3,
    BankProfileStatus.FUNDED: 4,
}

EXIT_STATUSES = frozenset({BankProfileStatus.REJECTED, BankProfileStatus.CANCELED})

# From approved on, the submission form is frozen
LOCKED_STATUSES = frozenset(
    {BankProfileStatus.APPROVED, BankProfileStatus.FUNDED}
) | EXIT_STATUSES


class BankDocument(BaseModel):
    name: str = Field(..., min_length=1)
    type: str = Field("application/pdf")
    file_url: str = Field(..., min_length=1)
    uploaded_at: Optional[datetime] = None


class BankProfileCreate(BaseModel):
    customer_id: str = Field(..., min_length=1)
    order_id: str = Field(..., min_length=1)
    bank_name: str = Field(..., min_length=1, max_length=200)
    account_number: str = Field(..., min_length=1, max_length=50)
    account_holder: str = Field(..., min_length=1, max_length=200)
    branch: Optional[str] = Field(None, max_length=200)
    documents: list[BankDocument] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=1000)


class BankProfileStatusUpdate(BaseModel):
    status: BankProfileStatus
    notes: Optional[str] = Field(None, max_length=1000)


class BankProfile(BaseModel):
    id: str = Field(..., alias="_id")
    customer_id: Optional[str] = None
    order_id: Optional[str] = None
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    account_holder: Optional[str] = None
    branch: Optional[str] = None
    documents: list[BankDocument] = Field(default_factory=list)
    status: BankProfileStatus = BankProfileStatus.PENDING
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("customer_id", "order_id", mode="before")
    @classmethod
    def reference_to_id(cls, v):
        if isinstance(v, dict):
            return v.get("_id") or v.get("id")
        return v

    @property
    def is_locked(self) -> bool:
        return self.status in LOCKED_STATUSES
