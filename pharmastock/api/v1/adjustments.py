"""
Adjustment endpoints: returns, write-offs, replacements and opening stock.
"""
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

from pharmastock.core.config import settings
from pharmastock.core.database import get_db
from pharmastock.ledger import TransactionType
from pharmastock.schemas.stock import (
    ReturnCreate,
    WriteOffCreate,
    ReplacementCreate,
    OpeningStockCreate,
    MovementGroupResponse,
    MovementGroupListResponse
)
from pharmastock.services import movements

router = APIRouter(prefix="/adjustments", tags=["Adjustments"])


@router.post("/returns", response_model=MovementGroupResponse, status_code=status.HTTP_201_CREATED)
def create_return(return_data: ReturnCreate, db: Session = Depends(get_db)):
    """
    Record returned goods.

    - customer to godown: RETURN_TO_GODOWN
    - customer to rep: RETURN_TO_MR
    - rep to godown: RETURN_FROM_MR
    """
    group_id = movements.record_return(db, return_data)
    return movements.get_group(db, movements.ADJUSTMENT, group_id)


@router.post("/write-offs", response_model=MovementGroupResponse, status_code=status.HTTP_201_CREATED)
def create_write_off(write_off_data: WriteOffCreate, db: Session = Depends(get_db)):
    """Write off damaged, lost or expired stock at the godown or at a rep."""
    group_id = movements.record_write_off(db, write_off_data)
    return movements.get_group(db, movements.ADJUSTMENT, group_id)


@router.post("/replacements", response_model=MovementGroupResponse, status_code=status.HTTP_201_CREATED)
def create_replacement(replacement_data: ReplacementCreate, db: Session = Depends(get_db)):
    group_id = movements.record_replacement(db, replacement_data)
    return movements.get_group(db, movements.ADJUSTMENT, group_id)


@router.post("/opening-stock", response_model=MovementGroupResponse, status_code=status.HTTP_201_CREATED)
def create_opening_stock(opening_data: OpeningStockCreate, db: Session = Depends(get_db)):
    group_id = movements.record_opening_stock(db, opening_data)
    return movements.get_group(db, movements.ADJUSTMENT, group_id)


@router.get("", response_model=MovementGroupListResponse)
def list_adjustments(
    transaction_type: Optional[TransactionType] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db)
):
    types = {transaction_type.value} if transaction_type else None
    items, total = movements.list_groups(db, movements.ADJUSTMENT, types, page=page, page_size=page_size)
    return MovementGroupListResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        pages=(total + page_size - 1) // page_size
    )


@router.get("/{group_id}", response_model=MovementGroupResponse)
def get_adjustment(group_id: uuid.UUID, db: Session = Depends(get_db)):
    return movements.get_group(db, movements.ADJUSTMENT, group_id)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_adjustment(group_id: uuid.UUID, db: Session = Depends(get_db)):
    movements.delete_group(db, movements.ADJUSTMENT, group_id)
    return None
