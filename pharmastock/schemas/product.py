"""
Pydantic schemas for Product model.
"""
from typing import Optional
from datetime import datetime
import uuid
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict


class ProductBase(BaseModel):
    """Base product schema."""
    product_code: str = Field(..., min_length=1, max_length=100)
    product_name: str = Field(..., min_length=1, max_length=500)
    generic_name: str = Field(..., min_length=1, max_length=500)
    manufacturer: str = Field(..., min_length=1, max_length=255)
    category_id: uuid.UUID
    sub_category_id: Optional[uuid.UUID] = None
    formulation_id: uuid.UUID
    unit_of_measure_smallest: str = Field(default="Strip", max_length=50)
    base_cost_per_strip: Decimal = Field(..., ge=0, decimal_places=2)
    storage_conditions: Optional[str] = None
    image_url: Optional[str] = None
    min_stock_level_godown: int = Field(default=0, ge=0)
    min_stock_level_mr: int = Field(default=0, ge=0)
    lead_time_days: int = Field(default=0, ge=0)


class ProductCreate(ProductBase):
    """Schema for creating a product."""
    # Optional packaging template to copy units from on creation
    packaging_template_name: Optional[str] = None


class ProductUpdate(BaseModel):
    """Schema for updating a product. Only provided fields are changed."""
    product_name: Optional[str] = Field(None, min_length=1, max_length=500)
    generic_name: Optional[str] = Field(None, min_length=1, max_length=500)
    manufacturer: Optional[str] = Field(None, min_length=1, max_length=255)
    category_id: Optional[uuid.UUID] = None
    sub_category_id: Optional[uuid.UUID] = None
    formulation_id: Optional[uuid.UUID] = None
    base_cost_per_strip: Optional[Decimal] = Field(None, ge=0, decimal_places=2)
    storage_conditions: Optional[str] = None
    image_url: Optional[str] = None
    min_stock_level_godown: Optional[int] = Field(None, ge=0)
    min_stock_level_mr: Optional[int] = Field(None, ge=0)
    lead_time_days: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ProductResponse(ProductBase):
    """Schema for product response."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    is_active: bool
    category_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    """Paginated product list response."""
    items: list[ProductResponse]
    total: int
    page: int
    page_size: int
    pages: int
