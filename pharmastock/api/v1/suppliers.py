"""
Supplier endpoints.
"""
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from pharmastock.core.database import get_db
from pharmastock.models.catalog import Supplier
from pharmastock.schemas.catalog import SupplierCreate, SupplierUpdate, SupplierResponse

router = APIRouter(prefix="/suppliers", tags=["Suppliers"])


def _get_supplier(db: Session, supplier_id: uuid.UUID) -> Supplier:
    supplier = db.get(Supplier, supplier_id)
    if supplier is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Supplier not found"
        )
    return supplier


@router.get("", response_model=list[SupplierResponse])
def list_suppliers(
    search: Optional[str] = None,
    active_only: bool = True,
    db: Session = Depends(get_db)
):
    """
    List suppliers.

    - **search**: Match by name or supplier code
    - **active_only**: Hide deactivated suppliers
    """
    query = select(Supplier).order_by(Supplier.supplier_name)
    if active_only:
        query = query.where(Supplier.is_active == True)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Supplier.supplier_name.ilike(pattern), Supplier.supplier_code.ilike(pattern)))
    return db.execute(query).scalars().all()


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
def create_supplier(supplier_data: SupplierCreate, db: Session = Depends(get_db)):
    if supplier_data.supplier_code:
        existing = db.execute(
            select(Supplier).where(Supplier.supplier_code == supplier_data.supplier_code)
        ).scalar_one_or_none()
        if existing:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Supplier with code '{supplier_data.supplier_code}' already exists"
            )

    supplier = Supplier(**supplier_data.model_dump())
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    return supplier


@router.get("/{supplier_id}", response_model=SupplierResponse)
def get_supplier(supplier_id: uuid.UUID, db: Session = Depends(get_db)):
    return _get_supplier(db, supplier_id)


@router.put("/{supplier_id}", response_model=SupplierResponse)
def update_supplier(supplier_id: uuid.UUID, supplier_data: SupplierUpdate, db: Session = Depends(get_db)):
    supplier = _get_supplier(db, supplier_id)
    for field, value in supplier_data.model_dump(exclude_unset=True).items():
        setattr(supplier, field, value)
    db.commit()
    db.refresh(supplier)
    return supplier


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_supplier(supplier_id: uuid.UUID, db: Session = Depends(get_db)):
    """Soft delete; past purchases keep their supplier."""
    supplier = _get_supplier(db, supplier_id)
    supplier.is_active = False
    db.commit()
    return None
