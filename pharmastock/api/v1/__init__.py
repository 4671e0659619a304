"""API v1 Router."""
from fastapi import APIRouter

from pharmastock.api.v1 import (
    catalog, suppliers, products, packaging, batches, purchases, sales, adjustments, stock
)

api_router = APIRouter(prefix="/api/v1")

# Include all route modules
api_router.include_router(catalog.router)
api_router.include_router(suppliers.router)
api_router.include_router(products.router)
api_router.include_router(packaging.router)
api_router.include_router(batches.router)
api_router.include_router(purchases.router)
api_router.include_router(sales.router)
api_router.include_router(adjustments.router)
api_router.include_router(stock.router)

__all__ = ["api_router"]
