"""
Pydantic schemas for request/response validation.
"""
from pharmastock.schemas.catalog import (
    CategoryBase, CategoryCreate, CategoryUpdate, CategoryResponse,
    SubCategoryBase, SubCategoryCreate, SubCategoryUpdate, SubCategoryResponse,
    FormulationBase, FormulationCreate, FormulationUpdate, FormulationResponse,
    SupplierBase, SupplierCreate, SupplierUpdate, SupplierResponse
)
from pharmastock.schemas.product import (
    ProductBase, ProductCreate, ProductUpdate, ProductResponse, ProductListResponse
)
from pharmastock.schemas.packaging import (
    PackagingUnitBase, PackagingUnitCreate, PackagingUnitUpdate, PackagingUnitResponse,
    ApplyTemplateRequest, ConversionResponse,
    PackagingTemplateCreate, PackagingTemplateResponse, PackagingTemplateGroup
)
from pharmastock.schemas.batch import BatchBase, BatchCreate, BatchUpdate, BatchResponse
from pharmastock.schemas.stock import (
    MovementLine, PurchaseCreate, DispatchCreate, DirectSaleCreate, MRSaleCreate, SaleReplace,
    ReturnSource, ReturnCreate, WriteOffReason, WriteOffCreate, ReplacementCreate, OpeningStockCreate,
    StockTransactionResponse, StockTransactionView, StockTransactionListResponse,
    MovementGroupResponse, MovementGroupSummary, MovementGroupListResponse,
    StockPosition, StockSummary, StockReportResponse,
    RecalculateResponse, BalanceMismatchResponse, VerifyResponse
)

__all__ = [
    # Catalog schemas
    "CategoryBase", "CategoryCreate", "CategoryUpdate", "CategoryResponse",
    "SubCategoryBase", "SubCategoryCreate", "SubCategoryUpdate", "SubCategoryResponse",
    "FormulationBase", "FormulationCreate", "FormulationUpdate", "FormulationResponse",
    "SupplierBase", "SupplierCreate", "SupplierUpdate", "SupplierResponse",

    # Product schemas
    "ProductBase", "ProductCreate", "ProductUpdate", "ProductResponse", "ProductListResponse",

    # Packaging schemas
    "PackagingUnitBase", "PackagingUnitCreate", "PackagingUnitUpdate", "PackagingUnitResponse",
    "ApplyTemplateRequest", "ConversionResponse",
    "PackagingTemplateCreate", "PackagingTemplateResponse", "PackagingTemplateGroup",

    # Batch schemas
    "BatchBase", "BatchCreate", "BatchUpdate", "BatchResponse",

    # Movement schemas
    "MovementLine", "PurchaseCreate", "DispatchCreate", "DirectSaleCreate", "MRSaleCreate", "SaleReplace",
    "ReturnSource", "ReturnCreate", "WriteOffReason", "WriteOffCreate", "ReplacementCreate", "OpeningStockCreate",

    # Ledger and report schemas
    "StockTransactionResponse", "StockTransactionView", "StockTransactionListResponse",
    "MovementGroupResponse", "MovementGroupSummary", "MovementGroupListResponse",
    "StockPosition", "StockSummary", "StockReportResponse",
    "RecalculateResponse", "BalanceMismatchResponse", "VerifyResponse",
]
