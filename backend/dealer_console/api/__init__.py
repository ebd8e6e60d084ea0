"""
API Routes
Project: Dealer Console

Aggregation of the versioned routers.
"""

from dealer_console.api.v1 import api_v1_router

__all__ = ["api_v1_router"]
