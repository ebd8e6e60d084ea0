"""
FastAPI router for bank profiles
Project: Dealer Console

Installment financing profiles: one per order, status moving forward
along the approval pipeline.
"""

from fastapi import APIRouter, Path, status

from dealer_console.core.deps import BankProfileServiceDep
from dealer_console.schemas.bank_profile import (
    BankProfile,
    BankProfileCreate,
    BankProfileStatusUpdate,
)

router = APIRouter(
    prefix="/bank-profiles",
    tags=["Hồ sơ ngân hàng"],
)


@router.post(
    "",
    name="bank_profile_create",
    summary="Create bank profile",
    description="Creates the bank profile of an installment order (one per order).",
    response_model=BankProfile,
    status_code=status.HTTP_201_CREATED,
)
async def create_bank_profile(
    data: BankProfileCreate,
    service: BankProfileServiceDep,
) -> BankProfile:
    return await service.create(data)


@router.get(
    "/order/{order_id}",
    name="bank_profile_by_order",
    summary="Bank profile of an order",
    response_model=BankProfile,
    status_code=status.HTTP_200_OK,
)
async def get_bank_profile_by_order(
    service: BankProfileServiceDep,
    order_id: str = Path(..., description="Order id"),
) -> BankProfile:
    return await service.get_by_order(order_id)


@router.get(
    "/{profile_id}",
    name="bank_profile_detail",
    summary="Bank profile detail",
    response_model=BankProfile,
    status_code=status.HTTP_200_OK,
)
async def get_bank_profile(
    service: BankProfileServiceDep,
    profile_id: str = Path(..., description="Bank profile id"),
) -> BankProfile:
    return await service.get(profile_id)


@router.put(
    "/{profile_id}/status",
    name="bank_profile_status",
    summary="Update bank profile status",
    description=(
        "Moves the profile forward along pending, submitted, under_review, "
        "approved, funded; rejected and canceled close it."
    ),
    response_model=BankProfile,
    status_code=status.HTTP_200_OK,
)
async def update_bank_profile_status(
    data: BankProfileStatusUpdate,
    service: BankProfileServiceDep,
    profile_id: str = Path(..., description="Bank profile id"),
) -> BankProfile:
    return await service.update_status(profile_id, data.status, data.notes)
