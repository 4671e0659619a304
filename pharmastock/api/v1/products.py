"""
Products API endpoints for the catalog.
"""
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session, selectinload

from pharmastock.core.config import settings
from pharmastock.core.database import get_db
from pharmastock.models.catalog import ProductCategory, ProductSubCategory, ProductFormulation
from pharmastock.models.product import Product
from pharmastock.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse
)
from pharmastock.services.packaging_units import apply_template

router = APIRouter(prefix="/products", tags=["Products"])


def get_product_or_404(db: Session, product_id: uuid.UUID) -> Product:
    product = db.get(Product, product_id)
    if product is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )
    return product


def _check_references(db: Session, category_id=None, sub_category_id=None, formulation_id=None):
    if category_id is not None and db.get(ProductCategory, category_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    if formulation_id is not None and db.get(ProductFormulation, formulation_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Formulation not found")
    if sub_category_id is not None:
        sub_category = db.get(ProductSubCategory, sub_category_id)
        if sub_category is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sub-category not found")
        if category_id is not None and sub_category.category_id != category_id:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Sub-category does not belong to the selected category"
            )


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(product_data: ProductCreate, db: Session = Depends(get_db)):
    """
    Create a new product.

    - **product_code**: Unique product code
    - **base_cost_per_strip**: Cost used when a batch has no cost of its own
    - **packaging_template_name**: Optional template to copy packaging units from
    """
    existing = db.execute(
        select(Product).where(Product.product_code == product_data.product_code)
    ).scalar_one_or_none()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Product with code '{product_data.product_code}' already exists"
        )

    _check_references(db, product_data.category_id, product_data.sub_category_id, product_data.formulation_id)

    new_product = Product(**product_data.model_dump(exclude={"packaging_template_name"}))
    db.add(new_product)
    db.flush()

    if product_data.packaging_template_name:
        apply_template(db, new_product, product_data.packaging_template_name)

    db.commit()
    db.refresh(new_product)
    return new_product


@router.get("", response_model=ProductListResponse)
def list_products(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = None,
    category_id: Optional[uuid.UUID] = None,
    formulation_id: Optional[uuid.UUID] = None,
    active_only: bool = True,
    db: Session = Depends(get_db)
):
    """
    List products with pagination and filtering.

    - **search**: Search by name, generic name or product code
    - **category_id**: Filter by category
    - **active_only**: Show only active products
    """
    query = select(Product)

    if active_only:
        query = query.where(Product.is_active == True)

    if search:
        search_pattern = f"%{search}%"
        query = query.where(
            or_(
                Product.product_name.ilike(search_pattern),
                Product.generic_name.ilike(search_pattern),
                Product.product_code.ilike(search_pattern)
            )
        )

    if category_id:
        query = query.where(Product.category_id == category_id)

    if formulation_id:
        query = query.where(Product.formulation_id == formulation_id)

    # Get total count
    count_query = select(func.count()).select_from(query.subquery())
    total = db.execute(count_query).scalar()

    # Get paginated results
    query = query.options(selectinload(Product.category)).order_by(Product.product_name)
    query = query.offset((page - 1) * page_size).limit(page_size)
    products = db.execute(query).scalars().all()

    return ProductListResponse(
        items=products,
        total=total,
        page=page,
        page_size=page_size,
        pages=(total + page_size - 1) // page_size
    )


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: uuid.UUID, db: Session = Depends(get_db)):
    """Get a specific product by ID."""
    return get_product_or_404(db, product_id)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(product_id: uuid.UUID, product_data: ProductUpdate, db: Session = Depends(get_db)):
    """Update a product. Only provided fields are changed."""
    product = get_product_or_404(db, product_id)
    update_data = product_data.model_dump(exclude_unset=True)

    _check_references(
        db,
        update_data.get("category_id", product.category_id) if (
            "category_id" in update_data or "sub_category_id" in update_data
        ) else None,
        update_data.get("sub_category_id"),
        update_data.get("formulation_id")
    )

    for field, value in update_data.items():
        setattr(product, field, value)

    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: uuid.UUID, db: Session = Depends(get_db)):
    """Soft delete a product (set is_active=False). Its ledger history is kept."""
    product = get_product_or_404(db, product_id)
    product.is_active = False
    db.commit()
    return None
