"""
SQLAlchemy models for the PharmaStock application.
Import all models here to ensure they're registered with SQLAlchemy.
"""
from pharmastock.models.catalog import ProductCategory, ProductSubCategory, ProductFormulation, Supplier
from pharmastock.models.product import Product, PackagingUnit, PackagingTemplate
from pharmastock.models.batch import ProductBatch, BatchStatus
from pharmastock.models.stock import (
    StockPurchase, StockSale, StockAdjustment, StockTransaction, StockBalance
)

__all__ = [
    "ProductCategory",
    "ProductSubCategory",
    "ProductFormulation",
    "Supplier",
    "Product",
    "PackagingUnit",
    "PackagingTemplate",
    "ProductBatch",
    "BatchStatus",
    "StockPurchase",
    "StockSale",
    "StockAdjustment",
    "StockTransaction",
    "StockBalance",
]
