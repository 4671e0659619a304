"""
Purchase (goods received) endpoints.
"""
import uuid
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

from pharmastock.core.config import settings
from pharmastock.core.database import get_db
from pharmastock.schemas.stock import PurchaseCreate, MovementGroupResponse, MovementGroupListResponse
from pharmastock.services import movements

router = APIRouter(prefix="/purchases", tags=["Purchases"])


@router.post("", response_model=MovementGroupResponse, status_code=status.HTTP_201_CREATED)
def create_purchase(purchase_data: PurchaseCreate, db: Session = Depends(get_db)):
    """
    Record a goods-received note.

    Every line adds stock to the godown. Quantities may be entered in any of
    the product's packaging units and are stored in strips.
    """
    group_id = movements.record_purchase(db, purchase_data)
    return movements.get_group(db, movements.PURCHASE, group_id)


@router.get("", response_model=MovementGroupListResponse)
def list_purchases(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db)
):
    items, total = movements.list_groups(db, movements.PURCHASE, page=page, page_size=page_size)
    return MovementGroupListResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        pages=(total + page_size - 1) // page_size
    )


@router.get("/{group_id}", response_model=MovementGroupResponse)
def get_purchase(group_id: uuid.UUID, db: Session = Depends(get_db)):
    return movements.get_group(db, movements.PURCHASE, group_id)


@router.put("/{group_id}", response_model=MovementGroupResponse)
def replace_purchase(group_id: uuid.UUID, purchase_data: PurchaseCreate, db: Session = Depends(get_db)):
    """Replace all lines of a purchase. Affected balances are rebuilt from the ledger."""
    movements.replace_purchase(db, group_id, purchase_data)
    return movements.get_group(db, movements.PURCHASE, group_id)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_purchase(group_id: uuid.UUID, db: Session = Depends(get_db)):
    movements.delete_group(db, movements.PURCHASE, group_id)
    return None
