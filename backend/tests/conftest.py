"""
Pytest configuration and fixtures for the Dealer Console tests.

The dealership API is never called: services receive an AsyncMock of
DealerApiClient, the HTTP client itself is tested with httpx.MockTransport.
"""

from decimal import Decimal
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from dealer_console.schemas.document import GeneratedDocument
from dealer_console.schemas.order import Order
from dealer_console.schemas.token import CurrentUser
from dealer_console.services.api_client import DealerApiClient
from dealer_console.services.pdf_service import PdfService
from dealer_console.services.payment_service import PaymentLifecycleService, StockRecheckPolicy


DEALERSHIP_ID = "dealer-001"
OTHER_DEALERSHIP_ID = "dealer-999"


# ============================================================
# Order data
# ============================================================


def make_order_data(**overrides: Any) -> dict[str, Any]:
    """Order as returned by GET /api/orders/{id}."""
    data = {
        "_id": "order-001",
        "code": "ORD-2024-001",
        "customer_id": {
            "_id": "cust-001",
            "full_name": "Nguyễn Văn An",
            "phone": "0901234567",
            "email": "an.nguyen@example.com",
        },
        "dealership_id": DEALERSHIP_ID,
        "items": [
            {
                "vehicle_id": "veh-001",
                "vehicle_name": "VinFast VF8 Plus",
                "vehicle_price": 1_000_000_000,
                "color": "Trắng",
                "quantity": 1,
                "discount": 0,
                "options": [],
                "accessories": [],
                "final_amount": 1_000_000_000,
            }
        ],
        "final_amount": 1_000_000_000,
        "paid_amount": 0,
        "payment_method": "cash",
        "status": "pending",
        "notes": None,
    }
    data.update(overrides)
    return data


def make_order(**overrides: Any) -> Order:
    return Order.model_validate(make_order_data(**overrides))


@pytest.fixture
def pending_order() -> Order:
    """Fresh order: pending, nothing paid."""
    return make_order()


@pytest.fixture
def vehicle_ready_order() -> Order:
    """Deposit of 20% paid, vehicle marked ready."""
    return make_order(status="vehicle_ready", paid_amount=200_000_000)


@pytest.fixture
def fully_paid_order() -> Order:
    return make_order(status="fully_paid", paid_amount=1_000_000_000)


# ============================================================
# Users
# ============================================================


@pytest.fixture
def dealer_staff() -> CurrentUser:
    return CurrentUser(
        id="user-001",
        email="staff@dealer.vn",
        name="Trần Thị Bình",
        role="dealer_staff",
        dealership_id=DEALERSHIP_ID,
        token="token-staff",
    )


@pytest.fixture
def other_dealer_staff() -> CurrentUser:
    return CurrentUser(
        id="user-002",
        role="dealer_staff",
        dealership_id=OTHER_DEALERSHIP_ID,
        token="token-other",
    )


@pytest.fixture
def evm_staff() -> CurrentUser:
    return CurrentUser(id="user-003", role="evm_staff", token="token-evm")


# ============================================================
# Mocks
# ============================================================


@pytest.fixture
def mock_api():
    """AsyncMock of DealerApiClient: every coroutine method is an AsyncMock."""
    api = AsyncMock(spec=DealerApiClient)
    api.get = AsyncMock(return_value={"success": True, "data": []})
    api.get_customer = AsyncMock(return_value={})
    api.get_dealership = AsyncMock(return_value={})
    return api


@pytest.fixture
def mock_pdf_service():
    pdf = MagicMock(spec=PdfService)
    pdf.generate_contract_pdf.return_value = GeneratedDocument(
        filename="Hop-dong-ORD-2024-001.pdf",
        content=b"%PDF-1.7 contract",
    )
    return pdf


@pytest.fixture
def mock_sleep():
    return AsyncMock()


@pytest.fixture
def recheck_policy(mock_sleep) -> StockRecheckPolicy:
    return StockRecheckPolicy(attempts=1, initial_delay=3.0, backoff=2.0, sleep=mock_sleep)


@pytest.fixture
def payment_service(mock_api, mock_pdf_service, recheck_policy) -> PaymentLifecycleService:
    return PaymentLifecycleService(
        mock_api,
        pdf_service=mock_pdf_service,
        policy=recheck_policy,
        deposit_min_percent=Decimal("10"),
        deposit_max_percent=Decimal("30"),
        dealer_scoped_roles=["dealer_staff", "dealer_manager"],
    )
