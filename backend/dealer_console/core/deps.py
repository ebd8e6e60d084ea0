"""
Dependency Injection
Project: Dealer Console

Caller identity from the bearer token, the upstream API client bound
to that token, and the services built on top of it.
"""

from typing import Annotated, Optional

import httpx
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from dealer_console.core.exceptions import AuthenticationError
from dealer_console.core.security import decode_token, normalize_role
from dealer_console.schemas.token import CurrentUser as CurrentUserModel
from dealer_console.services.api_client import DealerApiClient
from dealer_console.services.bank_profile_service import BankProfileService
from dealer_console.services.contract_service import ContractRecordService
from dealer_console.services.enrichment_service import ContractDataResolver
from dealer_console.services.payment_service import PaymentLifecycleService
from dealer_console.services.pdf_service import PdfService
from dealer_console.services.read_services import (
    DebtService,
    OrderHistoryService,
    PaymentHistoryService,
)

# OAuth2 scheme - extracts the token from the Authorization header.
# Tokens are issued by the dealership API login endpoint.
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/auth/login",
    auto_error=False,
)

_pdf_service = PdfService()


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
) -> CurrentUserModel:
    """
    Dependency returning the operator from the JWT claims.

    Raises:
        AuthenticationError: Missing, malformed or expired token
    """
    if not token:
        raise AuthenticationError("Thiếu token xác thực", extra={"www_authenticate": "Bearer"})

    payload = decode_token(token)
    return CurrentUserModel(
        id=payload.sub,
        email=payload.email,
        name=payload.name or "Người dùng",
        role=normalize_role(payload.role),
        dealership_id=payload.dealership_id,
        token=token,
    )


CurrentUser = Annotated[CurrentUserModel, Depends(get_current_user)]


def get_http_client(request: Request) -> httpx.AsyncClient:
    """The shared httpx client created in the application lifespan."""
    return request.app.state.http_client


def get_api_client(
    user: CurrentUser,
    http: httpx.AsyncClient = Depends(get_http_client),
) -> DealerApiClient:
    return DealerApiClient(http, token=user.token)


ApiClient = Annotated[DealerApiClient, Depends(get_api_client)]


def get_pdf_service() -> PdfService:
    return _pdf_service


def get_payment_service(
    client: ApiClient,
    pdf_service: PdfService = Depends(get_pdf_service),
) -> PaymentLifecycleService:
    return PaymentLifecycleService(
        client,
        pdf_service=pdf_service,
        resolver=ContractDataResolver(client),
    )


def get_resolver(client: ApiClient) -> ContractDataResolver:
    return ContractDataResolver(client)


def get_payment_history_service(client: ApiClient) -> PaymentHistoryService:
    return PaymentHistoryService(client)


def get_order_history_service(client: ApiClient) -> OrderHistoryService:
    return OrderHistoryService(client)


def get_debt_service(client: ApiClient) -> DebtService:
    return DebtService(client)


def get_bank_profile_service(client: ApiClient) -> BankProfileService:
    return BankProfileService(client)


def get_contract_service(client: ApiClient) -> ContractRecordService:
    return ContractRecordService(client)


# Type aliases for common use
PaymentServiceDep = Annotated[PaymentLifecycleService, Depends(get_payment_service)]
PdfServiceDep = Annotated[PdfService, Depends(get_pdf_service)]
ResolverDep = Annotated[ContractDataResolver, Depends(get_resolver)]
PaymentHistoryDep = Annotated[PaymentHistoryService, Depends(get_payment_history_service)]
OrderHistoryDep = Annotated[OrderHistoryService, Depends(get_order_history_service)]
DebtServiceDep = Annotated[DebtService, Depends(get_debt_service)]
BankProfileServiceDep = Annotated[BankProfileService, Depends(get_bank_profile_service)]
ContractServiceDep = Annotated[ContractRecordService, Depends(get_contract_service)]


__all__ = [
    "oauth2_scheme",
    "get_current_user",
    "get_http_client",
    "get_api_client",
    "CurrentUser",
    "ApiClient",
    "PaymentServiceDep",
    "PdfServiceDep",
    "ResolverDep",
    "PaymentHistoryDep",
    "OrderHistoryDep",
    "DebtServiceDep",
    "BankProfileServiceDep",
    "ContractServiceDep",
]
