"""API v1 Router."""
from fastapi import APIRouter

from butcher_pos.api.v1 import carts, products, reports

api_router = APIRouter(prefix="/api/v1")

# Include all route modules
api_router.include_router(carts.router)
api_router.include_router(products.router)
api_router.include_router(reports.router)

__all__ = ["api_router"]
