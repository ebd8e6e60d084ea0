"""
Access token handling
Project: Dealer Console

Tokens are issued and verified by the dealership API. This module only
reads their claims (role, dealership, expiry) to run the local guards
and to refuse tokens that are about to expire before calling upstream.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from dealer_console.core.exceptions import AuthenticationError
from dealer_console.schemas.token import TokenPayload

# A token this close to its expiry is treated as already expired
EXPIRY_LEEWAY = timedelta(seconds=60)

ROLE_ALIASES = {
    "admin": "admin",
    "evm staff": "evm_staff",
    "evm_staff": "evm_staff",
    "dealer manager": "dealer_manager",
    "dealer_manager": "dealer_manager",
    "dealer staff": "dealer_staff",
    "dealer_staff": "dealer_staff",
}


def normalize_role(role_name: Optional[str]) -> str:
    """
    Maps the role names used by the backend to the internal ones.

    Unknown or missing roles get the least privileged role, dealer_staff.
    """
    if not role_name:
        return "dealer_staff"
    role = role_name.strip().lower()
    if "admin" in role:
        return "admin"
    for alias, normalized in ROLE_ALIASES.items():
        if alias in role:
            return normalized
    return "dealer_staff"


def is_token_expired(exp: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True when there is no expiry or it falls within EXPIRY_LEEWAY of now."""
    if exp is None:
        return True
    now = now or datetime.now(timezone.utc)
    if exp.tzinfo is None:
        exp = exp.replace(tzinfo=timezone.utc)
    return now >= exp - EXPIRY_LEEWAY


def decode_token(token: str, now: Optional[datetime] = None) -> TokenPayload:
    """
    Reads the claims of an access token without verifying the signature.

    Args:
        token: Bearer token
        now: Reference time (tests)

    Returns:
        TokenPayload with the claims

    Raises:
        AuthenticationError: malformed token, missing subject, or expired
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        raise AuthenticationError(f"Token không hợp lệ: {e}")

    subject = claims.get("sub") or claims.get("id") or claims.get("_id")
    if not subject:
        raise AuthenticationError("Token không hợp lệ: thiếu mã người dùng")

    exp = claims.get("exp")
    payload = TokenPayload(
        sub=str(subject),
        role=claims.get("role") or claims.get("roleName"),
        email=claims.get("email"),
        name=claims.get("full_name") or claims.get("name"),
        dealership_id=claims.get("dealership_id") or claims.get("dealerId"),
        exp=datetime.fromtimestamp(exp, tz=timezone.utc) if isinstance(exp, (int, float)) else None,
    )

    if is_token_expired(payload.exp, now):
        raise AuthenticationError()

    return payload


__all__ = [
    "normalize_role",
    "is_token_expired",
    "decode_token",
]
