"""
Pydantic schemas for the contract record of an order
Project: Dealer Console

The backend keeps one contract record per order: the generated contract
and the scans of the copy signed by the customer.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SignedContractFile(BaseModel):
    """A scan (image or PDF) of the signed contract."""

    url: str
    uploaded_at: Optional[datetime] = None
    type: Optional[str] = None

    model_config = ConfigDict(extra="allow")


class ContractInfo(BaseModel):
    """Contract record of an order, with its signed flag and timestamp."""

    id: Optional[str] = Field(None, alias="_id")
    contract_url: Optional[str] = None
    contract_signed: bool = False
    signed_date: Optional[datetime] = None
    upload_date: Optional[datetime] = None
    notes: Optional[str] = None
    signed_by: Optional[str] = None
    uploaded_by: Optional[str] = None
    template_used: Optional[str] = None
    signed_contract_urls: list[SignedContractFile] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("signed_by", "uploaded_by", mode="before")
    @classmethod
    def reference_to_label(cls, v):
        if isinstance(v, dict):
            return v.get("full_name") or v.get("name") or v.get("_id") or v.get("id")
        return v

    @field_validator("signed_contract_urls", mode="before")
    @classmethod
    def plain_urls_to_files(cls, v):
        """Older records store bare URL strings."""
        if v is None:
            return []
        return [{"url": item} if isinstance(item, str) else item for item in v]


class SignedContractDelete(BaseModel):
    signed_contract_url: str = Field(..., min_length=1, description="URL of the scan to remove")
