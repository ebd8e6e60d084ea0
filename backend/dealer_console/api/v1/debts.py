"""
FastAPI router for debts
Project: Dealer Console

Read-only listings of customer and manufacturer debts.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from dealer_console.core.deps import DebtServiceDep
from dealer_console.schemas.common import Page
from dealer_console.schemas.debt import Debt, DebtFilters, DebtStats, DebtStatus

router = APIRouter(
    prefix="/debts",
    tags=["Công nợ"],
)


def get_debt_filters(
    page: Optional[int] = Query(None, ge=1, description="Page number"),
    limit: Optional[int] = Query(None, ge=1, le=200, description="Items per page"),
    q: Optional[str] = Query(None, description="Search by name, email or phone"),
    status_filter: Optional[DebtStatus] = Query(None, alias="status", description="Debt status"),
    start_date: Optional[date] = Query(None, description="From date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="To date (YYYY-MM-DD)"),
    min_amount: Optional[Decimal] = Query(None, ge=0, description="Minimum remaining amount"),
    max_amount: Optional[Decimal] = Query(None, ge=0, description="Maximum remaining amount"),
) -> DebtFilters:
    return DebtFilters(
        page=page,
        limit=limit,
        q=q,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        min_amount=min_amount,
        max_amount=max_amount,
    )


@router.get(
    "/customers",
    name="customer_debts",
    summary="Customer debts",
    description="Debts owed by customers to the dealership.",
    response_model=Page[Debt],
    status_code=status.HTTP_200_OK,
)
async def list_customer_debts(
    service: DebtServiceDep,
    filters: DebtFilters = Depends(get_debt_filters),
) -> Page[Debt]:
    return await service.customer_debts(filters)


@router.get(
    "/manufacturers",
    name="manufacturer_debts",
    summary="Manufacturer debts",
    description="Debts owed by dealerships to the manufacturer.",
    response_model=Page[Debt],
    status_code=status.HTTP_200_OK,
)
async def list_manufacturer_debts(
    service: DebtServiceDep,
    filters: DebtFilters = Depends(get_debt_filters),
) -> Page[Debt]:
    return await service.manufacturer_debts(filters)


@router.get(
    "/manufacturers/{debt_id}",
    name="manufacturer_debt_detail",
    summary="Manufacturer debt detail",
    response_model=Debt,
    status_code=status.HTTP_200_OK,
)
async def get_manufacturer_debt(
    service: DebtServiceDep,
    debt_id: str = Path(..., description="Debt id"),
) -> Debt:
    return await service.manufacturer_debt(debt_id)


@router.get(
    "/customers/order/{order_id}",
    name="customer_debt_by_order",
    summary="Customer debt of an order",
    response_model=Debt,
    status_code=status.HTTP_200_OK,
)
async def get_customer_debt_by_order(
    service: DebtServiceDep,
    order_id: str = Path(..., description="Order id"),
) -> Debt:
    return await service.customer_debt_by_order(order_id)


@router.get(
    "/stats",
    name="debt_stats",
    summary="Debt statistics",
    response_model=DebtStats,
    status_code=status.HTTP_200_OK,
)
async def get_debt_stats(service: DebtServiceDep) -> DebtStats:
    return await service.debt_stats()


@router.get(
    "/{debt_id}",
    name="debt_detail",
    summary="Debt detail",
    response_model=Debt,
    status_code=status.HTTP_200_OK,
)
async def get_debt(
    service: DebtServiceDep,
    debt_id: str = Path(..., description="Debt id"),
) -> Debt:
    return await service.get_debt(debt_id)
