"""
Pydantic schemas for packaging units and packaging templates.
"""
from typing import Optional
from datetime import datetime
import uuid
from pydantic import BaseModel, Field, ConfigDict


class PackagingUnitBase(BaseModel):
    unit_name: str = Field(..., min_length=1, max_length=100)
    conversion_factor_to_strips: int = Field(default=1, ge=1)
    is_base_unit: bool = False
    order_in_hierarchy: int = Field(..., ge=1)
    default_purchase_unit: bool = False
    default_sales_unit_mr: bool = False
    default_sales_unit_direct: bool = False


class PackagingUnitCreate(PackagingUnitBase):
    pass


class PackagingUnitUpdate(BaseModel):
    unit_name: Optional[str] = Field(None, min_length=1, max_length=100)
    conversion_factor_to_strips: Optional[int] = Field(None, ge=1)
    is_base_unit: Optional[bool] = None
    order_in_hierarchy: Optional[int] = Field(None, ge=1)
    default_purchase_unit: Optional[bool] = None
    default_sales_unit_mr: Optional[bool] = None
    default_sales_unit_direct: Optional[bool] = None


class PackagingUnitResponse(PackagingUnitBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    template_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


class ApplyTemplateRequest(BaseModel):
    """Replace a product's packaging units with a template's units."""
    template_name: str = Field(..., min_length=1)


class ConversionResponse(BaseModel):
    """Quantity expressed in a packaging unit and in strips."""
    quantity: int
    unit_name: Optional[str] = None
    conversion_factor_to_strips: int
    quantity_strips: int


class PackagingTemplateCreate(BaseModel):
    template_name: str = Field(..., min_length=1, max_length=255)
    unit_name: str = Field(..., min_length=1, max_length=100)
    conversion_factor_to_strips: int = Field(default=1, ge=1)
    is_base_unit: bool = False
    order_in_hierarchy: int = Field(default=1, ge=1)


class PackagingTemplateResponse(PackagingTemplateCreate):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class PackagingTemplateGroup(BaseModel):
    """All unit rows of one named template, in hierarchy order."""
    template_name: str
    units: list[PackagingTemplateResponse]
