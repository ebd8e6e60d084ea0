"""
API v1 Routes
Project: Dealer Console

Version 1 router of the API.
"""

from fastapi import APIRouter

from dealer_console.api.v1 import bank_profiles, debts, orders, quotes

# Aggregated v1 router
api_v1_router = APIRouter(prefix="/api/v1")

# Module routers
api_v1_router.include_router(orders.router)
api_v1_router.include_router(orders.payments_router)
api_v1_router.include_router(quotes.router)
api_v1_router.include_router(debts.router)
api_v1_router.include_router(bank_profiles.router)

__all__ = ["api_v1_router"]
