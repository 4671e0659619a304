"""
Pydantic schemas for product batches.
"""
from typing import Optional
from datetime import date, datetime
import uuid
from decimal import Decimal
from pydantic import BaseModel, Field, ConfigDict, model_validator

from pharmastock.models.batch import BatchStatus
from pharmastock.status import ExpiryStatus


class BatchBase(BaseModel):
    batch_number: str = Field(..., min_length=1, max_length=100)
    manufacturing_date: date
    expiry_date: date
    batch_cost_per_strip: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    status: BatchStatus = BatchStatus.ACTIVE
    notes: Optional[str] = None


class BatchCreate(BatchBase):

    @model_validator(mode="after")
    def check_dates(self):
        if self.expiry_date <= self.manufacturing_date:
            raise ValueError("Expiry date must be after manufacturing date")
        return self


class BatchUpdate(BaseModel):
    batch_number: Optional[str] = Field(None, min_length=1, max_length=100)
    manufacturing_date: Optional[date] = None
    expiry_date: Optional[date] = None
    batch_cost_per_strip: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    status: Optional[BatchStatus] = None
    notes: Optional[str] = None


class BatchResponse(BatchBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    is_active: bool
    expiry_status: Optional[ExpiryStatus] = None
    created_at: datetime
    updated_at: datetime
