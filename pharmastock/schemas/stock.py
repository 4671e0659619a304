"""
Pydantic schemas for stock movements, the ledger and stock positions.
"""
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
import uuid
from pydantic import BaseModel, Field, ConfigDict, model_validator

from pharmastock.ledger import LocationType
from pharmastock.status import StockStatus, ExpiryStatus


# ----------------------------------------------------------------------------
# Movement input
# ----------------------------------------------------------------------------

class MovementLine(BaseModel):
    """
    One product/batch line of a movement document.

    ``quantity`` is counted in the selected packaging unit, or in strips when
    no unit is given. ``cost_per_strip`` falls back to the batch cost, then
    to the product's base cost.
    """
    product_id: uuid.UUID
    batch_id: uuid.UUID
    quantity: int = Field(..., gt=0)
    packaging_unit_id: Optional[uuid.UUID] = None
    cost_per_strip: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    notes: Optional[str] = None


class PurchaseCreate(BaseModel):
    supplier_id: Optional[uuid.UUID] = None
    grn_number: Optional[str] = Field(None, max_length=100)
    purchase_date: Optional[datetime] = None
    notes: Optional[str] = None
    lines: list[MovementLine] = Field(..., min_length=1)


class DispatchCreate(BaseModel):
    """Godown to rep transfer."""
    mr_id: str = Field(..., min_length=1, max_length=100)
    dispatch_reference: Optional[str] = Field(None, max_length=100)
    sale_date: Optional[datetime] = None
    notes: Optional[str] = None
    lines: list[MovementLine] = Field(..., min_length=1)


class DirectSaleCreate(BaseModel):
    """Sale from the godown straight to a customer."""
    invoice_number: Optional[str] = Field(None, max_length=100)
    customer: Optional[str] = Field(None, max_length=100)
    sale_date: Optional[datetime] = None
    notes: Optional[str] = None
    lines: list[MovementLine] = Field(..., min_length=1)


class MRSaleCreate(BaseModel):
    """Sale made by a rep from the stock they hold."""
    mr_id: str = Field(..., min_length=1, max_length=100)
    invoice_number: Optional[str] = Field(None, max_length=100)
    customer: Optional[str] = Field(None, max_length=100)
    sale_date: Optional[datetime] = None
    notes: Optional[str] = None
    lines: list[MovementLine] = Field(..., min_length=1)


class SaleReplace(BaseModel):
    """New contents for an existing sale group. The sale type is kept."""
    mr_id: Optional[str] = Field(None, min_length=1, max_length=100)
    reference_document_id: Optional[str] = Field(None, max_length=100)
    customer: Optional[str] = Field(None, max_length=100)
    sale_date: Optional[datetime] = None
    notes: Optional[str] = None
    lines: list[MovementLine] = Field(..., min_length=1)


class ReturnSource(str, Enum):
    CUSTOMER = "CUSTOMER"
    MR = "MR"


class ReturnCreate(BaseModel):
    """
    Goods coming back.

    CUSTOMER -> GODOWN and CUSTOMER -> MR are inflows, MR -> GODOWN moves
    stock from a rep back to the godown.
    """
    source: ReturnSource = ReturnSource.CUSTOMER
    destination: LocationType = LocationType.GODOWN
    mr_id: Optional[str] = Field(None, min_length=1, max_length=100)
    customer: Optional[str] = Field(None, max_length=100)
    reference_document_id: Optional[str] = Field(None, max_length=100)
    return_date: Optional[datetime] = None
    notes: Optional[str] = None
    lines: list[MovementLine] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_route(self):
        if self.source == ReturnSource.MR and self.destination == LocationType.MR:
            raise ValueError("A rep cannot return stock to a rep")
        if (self.source == ReturnSource.MR or self.destination == LocationType.MR) and not self.mr_id:
            raise ValueError("mr_id is required when a rep is involved")
        return self


class WriteOffReason(str, Enum):
    DAMAGE = "DAMAGE"
    LOSS = "LOSS"
    EXPIRED = "EXPIRED"


class WriteOffCreate(BaseModel):
    reason: WriteOffReason
    location_type: LocationType = LocationType.GODOWN
    mr_id: Optional[str] = Field(None, min_length=1, max_length=100)
    reference_document_id: Optional[str] = Field(None, max_length=100)
    adjustment_date: Optional[datetime] = None
    notes: Optional[str] = None
    lines: list[MovementLine] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_mr(self):
        if self.location_type == LocationType.MR and not self.mr_id:
            raise ValueError("mr_id is required for rep write-offs")
        return self


class ReplacementCreate(BaseModel):
    """
    Customer replacement: returned goods come back into the godown and the
    replacement goods leave from the godown or from a rep.
    """
    replaced_from: LocationType = LocationType.GODOWN
    mr_id: Optional[str] = Field(None, min_length=1, max_length=100)
    customer: Optional[str] = Field(None, max_length=100)
    reference_document_id: Optional[str] = Field(None, max_length=100)
    adjustment_date: Optional[datetime] = None
    notes: Optional[str] = None
    returned_lines: list[MovementLine] = Field(..., min_length=1)
    replacement_lines: list[MovementLine] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_mr(self):
        if self.replaced_from == LocationType.MR and not self.mr_id:
            raise ValueError("mr_id is required when a rep gives the replacement")
        return self


class OpeningStockCreate(BaseModel):
    location_type: LocationType = LocationType.GODOWN
    mr_id: Optional[str] = Field(None, min_length=1, max_length=100)
    reference_document_id: Optional[str] = Field(None, max_length=100)
    adjustment_date: Optional[datetime] = None
    notes: Optional[str] = None
    lines: list[MovementLine] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_mr(self):
        if self.location_type == LocationType.MR and not self.mr_id:
            raise ValueError("mr_id is required for rep opening stock")
        return self


# ----------------------------------------------------------------------------
# Ledger output
# ----------------------------------------------------------------------------

class StockTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    sequence: int
    transaction_group_id: uuid.UUID
    document_type: str
    document_id: uuid.UUID
    product_id: uuid.UUID
    batch_id: uuid.UUID
    transaction_type: str
    quantity_strips: int
    location_type_source: Optional[str] = None
    location_id_source: Optional[str] = None
    location_type_destination: Optional[str] = None
    location_id_destination: Optional[str] = None
    counterparty_type: Optional[str] = None
    counterparty_id: Optional[str] = None
    cost_per_strip_at_transaction: Decimal
    reference_document_id: Optional[str] = None
    transaction_date: datetime
    notes: Optional[str] = None


class StockTransactionView(StockTransactionResponse):
    """Ledger row joined with product and batch details."""
    product_code: str
    product_name: str
    generic_name: Optional[str] = None
    category_name: Optional[str] = None
    batch_number: str
    expiry_date: date


class StockTransactionListResponse(BaseModel):
    items: list[StockTransactionView]
    total: int
    page: int
    page_size: int
    pages: int


class MovementGroupResponse(BaseModel):
    """All ledger lines written by one movement document."""
    group_id: uuid.UUID
    document_type: str
    reference_document_id: Optional[str] = None
    transaction_date: datetime
    line_count: int
    total_strips: int
    total_value: Decimal
    lines: list[StockTransactionResponse]


class MovementGroupSummary(BaseModel):
    group_id: uuid.UUID
    document_type: str
    transaction_types: list[str]
    reference_document_id: Optional[str] = None
    counterparty_id: Optional[str] = None
    transaction_date: datetime
    line_count: int
    total_strips: int
    total_value: Decimal


class MovementGroupListResponse(BaseModel):
    items: list[MovementGroupSummary]
    total: int
    page: int
    page_size: int
    pages: int


# ----------------------------------------------------------------------------
# Positions and report
# ----------------------------------------------------------------------------

class StockPosition(BaseModel):
    """Stock held at one (product, batch, location) with status badges."""
    product_id: uuid.UUID
    product_code: str
    product_name: str
    generic_name: Optional[str] = None
    category_name: Optional[str] = None
    batch_id: uuid.UUID
    batch_number: str
    expiry_date: date
    location_type: str
    location_id: str
    current_quantity_strips: int
    cost_per_strip: Decimal
    total_value: Decimal
    min_stock_level: int
    stock_status: StockStatus
    expiry_status: ExpiryStatus


class StockSummary(BaseModel):
    total_products: int = 0
    total_batches: int = 0
    total_value: Decimal = Decimal("0")
    low_stock_items: int = 0
    expiring_soon_items: int = 0


class StockReportResponse(BaseModel):
    items: list[StockPosition]
    summary: StockSummary


class RecalculateResponse(BaseModel):
    ledger_entries: int
    balance_rows: int


class BalanceMismatchResponse(BaseModel):
    product_id: uuid.UUID
    batch_id: uuid.UUID
    location_type: str
    location_id: str
    expected_quantity: int
    actual_quantity: int
    expected_cost: Optional[Decimal] = None
    actual_cost: Optional[Decimal] = None


class VerifyResponse(BaseModel):
    consistent: bool
    checked_keys: int
    mismatches: list[BalanceMismatchResponse]
