"""
Pydantic schemas for the caller identity
Project: Dealer Console

The access token is issued by the dealership API; only its claims
are read here.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TokenPayload(BaseModel):
    """
    Claims read from the access token.

    Attributes:
        sub: User id (falls back to the `id`/`_id` claims)
        role: Raw role name, e.g. "Dealer Staff"
        exp: Expiration time, if present
    """

    sub: str = Field(..., description="User id")
    role: Optional[str] = Field(None, description="Raw role name")
    email: Optional[str] = Field(None, description="User email")
    name: Optional[str] = Field(None, description="Display name")
    dealership_id: Optional[str] = Field(None, description="Dealership of the user")
    exp: Optional[datetime] = Field(None, description="Expiration time")


class CurrentUser(BaseModel):
    """
    The operator performing the request.

    Attributes:
        token: Bearer token, forwarded to the dealership API
        role: Normalized role (dealer_staff | dealer_manager | evm_staff | admin)
    """

    id: str
    email: Optional[str] = None
    name: str = "Người dùng"
    role: str = "dealer_staff"
    dealership_id: Optional[str] = None
    token: str = Field(..., repr=False)


__all__ = [
    "TokenPayload",
    "CurrentUser",
]
