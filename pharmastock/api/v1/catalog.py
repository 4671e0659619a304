"""
Catalog reference data endpoints: categories, sub-categories and formulations.
"""
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, and_
from sqlalchemy.orm import Session

from pharmastock.core.database import get_db
from pharmastock.models.catalog import ProductCategory, ProductSubCategory, ProductFormulation
from pharmastock.schemas.catalog import (
    CategoryCreate, CategoryUpdate, CategoryResponse,
    SubCategoryCreate, SubCategoryUpdate, SubCategoryResponse,
    FormulationCreate, FormulationUpdate, FormulationResponse
)

router = APIRouter(tags=["Catalog"])


def _get_or_404(db: Session, model, item_id: uuid.UUID, label: str):
    item = db.get(model, item_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found"
        )
    return item


def _apply_update(item, data):
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(item, field, value)


# ----------------------------------------------------------------------------
# Categories
# ----------------------------------------------------------------------------

@router.get("/categories", response_model=list[CategoryResponse])
def list_categories(active_only: bool = True, db: Session = Depends(get_db)):
    query = select(ProductCategory).order_by(ProductCategory.category_name)
    if active_only:
        query = query.where(ProductCategory.is_active == True)
    return db.execute(query).scalars().all()


@router.post("/categories", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(category_data: CategoryCreate, db: Session = Depends(get_db)):
    existing = db.execute(
        select(ProductCategory).where(ProductCategory.category_name == category_data.category_name)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Category '{category_data.category_name}' already exists"
        )

    category = ProductCategory(**category_data.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@router.get("/categories/{category_id}", response_model=CategoryResponse)
def get_category(category_id: uuid.UUID, db: Session = Depends(get_db)):
    return _get_or_404(db, ProductCategory, category_id, "Category")


@router.put("/categories/{category_id}", response_model=CategoryResponse)
def update_category(category_id: uuid.UUID, category_data: CategoryUpdate, db: Session = Depends(get_db)):
    category = _get_or_404(db, ProductCategory, category_id, "Category")
    _apply_update(category, category_data)
    db.commit()
    db.refresh(category)
    return category


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_category(category_id: uuid.UUID, db: Session = Depends(get_db)):
    """Soft delete: products keep pointing at the category."""
    category = _get_or_404(db, ProductCategory, category_id, "Category")
    category.is_active = False
    db.commit()
    return None


# ----------------------------------------------------------------------------
# Sub-categories
# ----------------------------------------------------------------------------

@router.get("/sub-categories", response_model=list[SubCategoryResponse])
def list_sub_categories(
    category_id: Optional[uuid.UUID] = None,
    active_only: bool = True,
    db: Session = Depends(get_db)
):
    query = select(ProductSubCategory).order_by(ProductSubCategory.sub_category_name)
    if category_id:
        query = query.where(ProductSubCategory.category_id == category_id)
    if active_only:
        query = query.where(ProductSubCategory.is_active == True)
    return db.execute(query).scalars().all()


@router.post("/sub-categories", response_model=SubCategoryResponse, status_code=status.HTTP_201_CREATED)
def create_sub_category(sub_category_data: SubCategoryCreate, db: Session = Depends(get_db)):
    _get_or_404(db, ProductCategory, sub_category_data.category_id, "Category")

    existing = db.execute(
        select(ProductSubCategory).where(
            and_(
                ProductSubCategory.category_id == sub_category_data.category_id,
                ProductSubCategory.sub_category_name == sub_category_data.sub_category_name
            )
        )
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Sub-category '{sub_category_data.sub_category_name}' already exists in this category"
        )

    sub_category = ProductSubCategory(**sub_category_data.model_dump())
    db.add(sub_category)
    db.commit()
    db.refresh(sub_category)
    return sub_category


@router.put("/sub-categories/{sub_category_id}", response_model=SubCategoryResponse)
def update_sub_category(
    sub_category_id: uuid.UUID,
    sub_category_data: SubCategoryUpdate,
    db: Session = Depends(get_db)
):
    sub_category = _get_or_404(db, ProductSubCategory, sub_category_id, "Sub-category")
    _apply_update(sub_category, sub_category_data)
    db.commit()
    db.refresh(sub_category)
    return sub_category


@router.delete("/sub-categories/{sub_category_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_sub_category(sub_category_id: uuid.UUID, db: Session = Depends(get_db)):
    sub_category = _get_or_404(db, ProductSubCategory, sub_category_id, "Sub-category")
    sub_category.is_active = False
    db.commit()
    return None


# ----------------------------------------------------------------------------
# Formulations
# ----------------------------------------------------------------------------

@router.get("/formulations", response_model=list[FormulationResponse])
def list_formulations(active_only: bool = True, db: Session = Depends(get_db)):
    query = select(ProductFormulation).order_by(ProductFormulation.formulation_name)
    if active_only:
        query = query.where(ProductFormulation.is_active == True)
    return db.execute(query).scalars().all()


@router.post("/formulations", response_model=FormulationResponse, status_code=status.HTTP_201_CREATED)
def create_formulation(formulation_data: FormulationCreate, db: Session = Depends(get_db)):
    existing = db.execute(
        select(ProductFormulation).where(ProductFormulation.formulation_name == formulation_data.formulation_name)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Formulation '{formulation_data.formulation_name}' already exists"
        )

    formulation = ProductFormulation(**formulation_data.model_dump())
    db.add(formulation)
    db.commit()
    db.refresh(formulation)
    return formulation


@router.put("/formulations/{formulation_id}", response_model=FormulationResponse)
def update_formulation(
    formulation_id: uuid.UUID,
    formulation_data: FormulationUpdate,
    db: Session = Depends(get_db)
):
    formulation = _get_or_404(db, ProductFormulation, formulation_id, "Formulation")
    _apply_update(formulation, formulation_data)
    db.commit()
    db.refresh(formulation)
    return formulation


@router.delete("/formulations/{formulation_id}", status_code=status.HTTP_204_NO_CONTENT)
def deactivate_formulation(formulation_id: uuid.UUID, db: Session = Depends(get_db)):
    formulation = _get_or_404(db, ProductFormulation, formulation_id, "Formulation")
    formulation.is_active = False
    db.commit()
    return None
