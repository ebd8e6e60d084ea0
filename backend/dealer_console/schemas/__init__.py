"""
Pydantic schemas for Dealer Console

Import the schemas from here for direct access,
e.g. from dealer_console.schemas import Order, Payment
"""

from dealer_console.schemas.bank_profile import (
    BankDocument,
    BankProfile,
    BankProfileCreate,
    BankProfileStatus,
    BankProfileStatusUpdate,
)
from dealer_console.schemas.common import Page, Pagination
from dealer_console.schemas.contract import ContractInfo, SignedContractDelete, SignedContractFile
from dealer_console.schemas.debt import Debt, DebtFilters, DebtStats, DebtStatus, DebtorType
from dealer_console.schemas.document import (
    ContractLineItem,
    ContractParty,
    ContractPDFData,
    GeneratedDocument,
    QuotePDFData,
)
from dealer_console.schemas.history import OrderStatusLog, OrderTimeline, OrderTimelineEntry
from dealer_console.schemas.order import Order, OrderItem, OrderPaymentMethod, OrderStatus
from dealer_console.schemas.payment import (
    DepositOutcome,
    DepositRequest,
    DepositResult,
    FinalPaymentOutcome,
    FinalPaymentRequest,
    Payment,
    PaymentMethod,
    PaymentSummary,
)
from dealer_console.schemas.token import CurrentUser, TokenPayload

__all__ = [
    # Order schemas
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderPaymentMethod",
    # Payment schemas
    "Payment",
    "PaymentMethod",
    "PaymentSummary",
    "DepositRequest",
    "DepositResult",
    "DepositOutcome",
    "FinalPaymentRequest",
    "FinalPaymentOutcome",
    # Document schemas
    "ContractParty",
    "ContractLineItem",
    "ContractPDFData",
    "QuotePDFData",
    "GeneratedDocument",
    # Contract record schemas
    "ContractInfo",
    "SignedContractFile",
    "SignedContractDelete",
    # Debt schemas
    "Debt",
    "DebtFilters",
    "DebtStats",
    "DebtStatus",
    "DebtorType",
    # History schemas
    "OrderTimeline",
    "OrderTimelineEntry",
    "OrderStatusLog",
    # Bank profile schemas
    "BankDocument",
    "BankProfile",
    "BankProfileCreate",
    "BankProfileStatus",
    "BankProfileStatusUpdate",
    # Common schemas
    "Page",
    "Pagination",
    # Token schemas
    "TokenPayload",
    "CurrentUser",
]
