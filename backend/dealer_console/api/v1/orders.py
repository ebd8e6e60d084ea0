"""
FastAPI router for order payments
Project: Dealer Console

Payment summary, deposit, final payment, contract download
and the payment/status history of an order.
"""

import logging

from fastapi import APIRouter, File, Path, Query, Response, UploadFile, status

from dealer_console.core.deps import (
    ApiClient,
    ContractServiceDep,
    CurrentUser,
    OrderHistoryDep,
    PaymentHistoryDep,
    PaymentServiceDep,
)
from dealer_console.schemas.common import Page
from dealer_console.schemas.contract import ContractInfo, SignedContractDelete
from dealer_console.schemas.document import GeneratedDocument
from dealer_console.schemas.history import OrderStatusLog, OrderTimeline
from dealer_console.schemas.payment import (
    DepositOutcome,
    DepositRequest,
    DepositResult,
    FinalPaymentOutcome,
    FinalPaymentRequest,
    Payment,
    PaymentSummary,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/orders",
    tags=["Thanh toán đơn hàng"],
)

payments_router = APIRouter(
    prefix="/payments",
    tags=["Thanh toán đơn hàng"],
)


def pdf_response(document: GeneratedDocument) -> Response:
    """The document as a download."""
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )


# -------------------------------------------------------------------
# Payments
# -------------------------------------------------------------------

@router.get(
    "/{order_id}/payment-summary",
    name="order_payment_summary",
    summary="Payment summary",
    description="Amounts, progress and the payment actions available for the order.",
    response_model=PaymentSummary,
    status_code=status.HTTP_200_OK,
)
async def get_payment_summary(
    service: PaymentServiceDep,
    client: ApiClient,
    order_id: str = Path(..., description="Order id"),
) -> PaymentSummary:
    order = await client.get_order(order_id)
    return service.summarize(order)


@router.post(
    "/{order_id}/deposit",
    name="order_deposit",
    summary="Deposit",
    description=(
        "Pays the deposit of a pending order (percentage of the contract value). "
        "Answers 202 when a stock shortage could not be confirmed yet."
    ),
    response_model=DepositOutcome,
    status_code=status.HTTP_200_OK,
    responses={202: {"model": DepositOutcome, "description": "Stock check still pending"}},
)
async def submit_deposit(
    data: DepositRequest,
    response: Response,
    user: CurrentUser,
    service: PaymentServiceDep,
    client: ApiClient,
    order_id: str = Path(..., description="Order id"),
) -> DepositOutcome:
    """
    Guards run on the freshly fetched order before the payment call:
    dealership ownership, pending status, percentage bounds.
    """
    order = await client.get_order(order_id)
    outcome = await service.submit_deposit(order, data, user)
    if outcome.result == DepositResult.PENDING_CHECK:
        response.status_code = status.HTTP_202_ACCEPTED
    return outcome


@router.post(
    "/{order_id}/final-payment",
    name="order_final_payment",
    summary="Final payment",
    description=(
        "Pays the whole remaining balance of an order whose vehicle is ready. "
        "The contract is generated when the order becomes fully paid."
    ),
    response_model=FinalPaymentOutcome,
    status_code=status.HTTP_200_OK,
)
async def submit_final_payment(
    data: FinalPaymentRequest,
    user: CurrentUser,
    service: PaymentServiceDep,
    client: ApiClient,
    order_id: str = Path(..., description="Order id"),
) -> FinalPaymentOutcome:
    order = await client.get_order(order_id)
    return await service.submit_final_payment(order, data, user)


@router.get(
    "/{order_id}/contract",
    name="order_contract_pdf",
    summary="Contract PDF",
    description="Sales contract of a fully paid order, as a PDF download.",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}},
)
async def download_contract(
    user: CurrentUser,
    service: PaymentServiceDep,
    client: ApiClient,
    order_id: str = Path(..., description="Order id"),
) -> Response:
    order = await client.get_order(order_id)
    service.check_dealership(order, user)
    document = await service.generate_contract(order)
    return pdf_response(document)


# -------------------------------------------------------------------
# Contract record
# -------------------------------------------------------------------

@router.get(
    "/{order_id}/contract-info",
    name="order_contract_info",
    summary="Contract record",
    description="Contract record of the order: signed flag, signature date and signed scans.",
    response_model=ContractInfo,
    status_code=status.HTTP_200_OK,
)
async def get_contract_info(
    service: ContractServiceDep,
    order_id: str = Path(..., description="Order id"),
) -> ContractInfo:
    return await service.get_info(order_id)


@router.post(
    "/{order_id}/signed-contract",
    name="order_signed_contract_upload",
    summary="Upload signed contract",
    description="Uploads the scan of the contract signed by the customer (image or PDF, below 10MB).",
    response_model=ContractInfo,
    status_code=status.HTTP_200_OK,
)
async def upload_signed_contract(
    user: CurrentUser,
    service: ContractServiceDep,
    payment_service: PaymentServiceDep,
    client: ApiClient,
    contract: UploadFile = File(..., description="Signed contract scan"),
    order_id: str = Path(..., description="Order id"),
) -> ContractInfo:
    order = await client.get_order(order_id)
    payment_service.check_dealership(order, user)
    content = await contract.read()
    return await service.upload_signed(
        order_id,
        filename=contract.filename or "hop-dong-da-ky",
        content=content,
        content_type=contract.content_type,
    )


@router.delete(
    "/{order_id}/signed-contract",
    name="order_signed_contract_delete",
    summary="Remove signed contract",
    response_model=ContractInfo,
    status_code=status.HTTP_200_OK,
)
async def delete_signed_contract(
    data: SignedContractDelete,
    user: CurrentUser,
    service: ContractServiceDep,
    payment_service: PaymentServiceDep,
    client: ApiClient,
    order_id: str = Path(..., description="Order id"),
) -> ContractInfo:
    order = await client.get_order(order_id)
    payment_service.check_dealership(order, user)
    return await service.delete_signed(order_id, data.signed_contract_url)


# -------------------------------------------------------------------
# History
# -------------------------------------------------------------------

@router.get(
    "/{order_id}/payments",
    name="order_payments",
    summary="Order payments",
    description="Payments recorded for the order (soft-deleted ones excluded).",
    response_model=Page[Payment],
    status_code=status.HTTP_200_OK,
)
async def list_order_payments(
    service: PaymentHistoryDep,
    order_id: str = Path(..., description="Order id"),
) -> Page[Payment]:
    return await service.list_for_order(order_id)


@router.get(
    "/{order_id}/history",
    name="order_history",
    summary="Order timeline",
    description="Ordered timeline of the status changes of the order.",
    response_model=OrderTimeline,
    status_code=status.HTTP_200_OK,
)
async def get_order_history(
    service: OrderHistoryDep,
    order_id: str = Path(..., description="Order id"),
) -> OrderTimeline:
    return await service.timeline(order_id)


@router.get(
    "/{order_id}/status-logs",
    name="order_status_logs",
    summary="Order status logs",
    description="Raw status-change audit records, paginated.",
    response_model=Page[OrderStatusLog],
    status_code=status.HTTP_200_OK,
)
async def list_order_status_logs(
    service: OrderHistoryDep,
    order_id: str = Path(..., description="Order id"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> Page[OrderStatusLog]:
    return await service.status_logs(order_id, page=page, limit=limit)


@payments_router.get(
    "/{payment_id}",
    name="payment_detail",
    summary="Payment detail",
    response_model=Payment,
    status_code=status.HTTP_200_OK,
)
async def get_payment(
    service: PaymentHistoryDep,
    payment_id: str = Path(..., description="Payment id"),
) -> Payment:
    return await service.get_payment(payment_id)
