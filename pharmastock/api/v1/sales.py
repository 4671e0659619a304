"""
Sales endpoints: dispatches to reps, direct godown sales and sales made by reps.
"""
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session

from pharmastock.core.config import settings
from pharmastock.core.database import get_db
from pharmastock.ledger import TransactionType
from pharmastock.schemas.stock import (
    DispatchCreate,
    DirectSaleCreate,
    MRSaleCreate,
    SaleReplace,
    MovementGroupResponse,
    MovementGroupListResponse
)
from pharmastock.services import movements

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post("/dispatch", response_model=MovementGroupResponse, status_code=status.HTTP_201_CREATED)
def create_dispatch(dispatch_data: DispatchCreate, db: Session = Depends(get_db)):
    """Move stock from the godown to a medical representative."""
    group_id = movements.record_dispatch(db, dispatch_data)
    return movements.get_group(db, movements.SALE, group_id)


@router.post("/direct", response_model=MovementGroupResponse, status_code=status.HTTP_201_CREATED)
def create_direct_sale(sale_data: DirectSaleCreate, db: Session = Depends(get_db)):
    """Sell from the godown to a customer."""
    group_id = movements.record_direct_sale(db, sale_data)
    return movements.get_group(db, movements.SALE, group_id)


@router.post("/mr", response_model=MovementGroupResponse, status_code=status.HTTP_201_CREATED)
def create_mr_sale(sale_data: MRSaleCreate, db: Session = Depends(get_db)):
    """Record a sale made by a rep from the stock they hold."""
    group_id = movements.record_mr_sale(db, sale_data)
    return movements.get_group(db, movements.SALE, group_id)


@router.get("", response_model=MovementGroupListResponse)
def list_sales(
    transaction_type: Optional[TransactionType] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db)
):
    """
    List sale groups, newest first.

    - **transaction_type**: DISPATCH_TO_MR, SALE_DIRECT_GODOWN or SALE_BY_MR
    """
    types = {transaction_type.value} if transaction_type else None
    items, total = movements.list_groups(db, movements.SALE, types, page=page, page_size=page_size)
    return MovementGroupListResponse(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        pages=(total + page_size - 1) // page_size
    )


@router.get("/{group_id}", response_model=MovementGroupResponse)
def get_sale(group_id: uuid.UUID, db: Session = Depends(get_db)):
    return movements.get_group(db, movements.SALE, group_id)


@router.put("/{group_id}", response_model=MovementGroupResponse)
def replace_sale(group_id: uuid.UUID, sale_data: SaleReplace, db: Session = Depends(get_db)):
    """Replace all lines of a sale group. The sale type cannot change."""
    movements.replace_sale(db, group_id, sale_data)
    return movements.get_group(db, movements.SALE, group_id)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale(group_id: uuid.UUID, db: Session = Depends(get_db)):
    movements.delete_group(db, movements.SALE, group_id)
    return None
