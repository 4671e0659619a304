"""
Batch (lot) endpoints.
"""
from typing import Optional
import uuid
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, and_
from sqlalchemy.orm import Session

from pharmastock.core.database import get_db
from pharmastock.models.batch import BatchStatus, ProductBatch
from pharmastock.schemas.batch import BatchCreate, BatchUpdate, BatchResponse
from pharmastock.status import expiry_status
from pharmastock.api.v1.products import get_product_or_404

router = APIRouter(tags=["Batches"])


def _to_response(batch: ProductBatch, today: Optional[date] = None) -> BatchResponse:
    response = BatchResponse.model_validate(batch)
    response.expiry_status = expiry_status(batch.expiry_date, today)
    return response


def _get_batch(db: Session, batch_id: uuid.UUID) -> ProductBatch:
    batch = db.get(ProductBatch, batch_id)
    if batch is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Batch not found"
        )
    return batch


@router.get("/products/{product_id}/batches", response_model=list[BatchResponse])
def list_batches(
    product_id: uuid.UUID,
    batch_status: Optional[BatchStatus] = None,
    db: Session = Depends(get_db)
):
    """Batches of a product, earliest expiry first."""
    get_product_or_404(db, product_id)
    query = select(ProductBatch).where(ProductBatch.product_id == product_id)
    if batch_status:
        query = query.where(ProductBatch.status == batch_status.value)
    batches = db.execute(query.order_by(ProductBatch.expiry_date)).scalars().all()
    return [_to_response(b) for b in batches]


@router.post("/products/{product_id}/batches", response_model=BatchResponse, status_code=status.HTTP_201_CREATED)
def create_batch(product_id: uuid.UUID, batch_data: BatchCreate, db: Session = Depends(get_db)):
    product = get_product_or_404(db, product_id)

    existing = db.execute(
        select(ProductBatch).where(
            and_(
                ProductBatch.product_id == product.id,
                ProductBatch.batch_number == batch_data.batch_number
            )
        )
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Batch '{batch_data.batch_number}' already exists for this product"
        )

    batch = ProductBatch(
        product_id=product.id,
        **batch_data.model_dump(exclude={"status"}),
        status=batch_data.status.value
    )
    db.add(batch)
    db.commit()
    db.refresh(batch)
    return _to_response(batch)


@router.get("/batches/{batch_id}", response_model=BatchResponse)
def get_batch(batch_id: uuid.UUID, db: Session = Depends(get_db)):
    return _to_response(_get_batch(db, batch_id))


@router.put("/batches/{batch_id}", response_model=BatchResponse)
def update_batch(batch_id: uuid.UUID, batch_data: BatchUpdate, db: Session = Depends(get_db)):
    batch = _get_batch(db, batch_id)
    update_data = batch_data.model_dump(exclude_unset=True)
    if "status" in update_data and update_data["status"] is not None:
        update_data["status"] = update_data["status"].value

    manufacturing_date = update_data.get("manufacturing_date", batch.manufacturing_date)
    expiry_date = update_data.get("expiry_date", batch.expiry_date)
    if expiry_date <= manufacturing_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Expiry date must be after manufacturing date"
        )

    for field, value in update_data.items():
        setattr(batch, field, value)

    db.commit()
    db.refresh(batch)
    return _to_response(batch)
