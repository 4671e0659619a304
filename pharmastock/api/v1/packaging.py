"""
Packaging unit and packaging template endpoints.
"""
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from pharmastock.core.database import get_db
from pharmastock.models.product import PackagingTemplate, PackagingUnit
from pharmastock.packaging import to_strips
from pharmastock.schemas.packaging import (
    PackagingUnitCreate,
    PackagingUnitUpdate,
    PackagingUnitResponse,
    ApplyTemplateRequest,
    ConversionResponse,
    PackagingTemplateCreate,
    PackagingTemplateResponse,
    PackagingTemplateGroup
)
from pharmastock.error_handlers import DuplicateResourceError
from pharmastock.services.packaging_units import apply_template, check_units
from pharmastock.api.v1.products import get_product_or_404

router = APIRouter(tags=["Packaging"])


def _get_unit(db: Session, unit_id: uuid.UUID) -> PackagingUnit:
    unit = db.get(PackagingUnit, unit_id)
    if unit is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Packaging unit not found"
        )
    return unit


@router.get("/products/{product_id}/packaging-units", response_model=list[PackagingUnitResponse])
def list_packaging_units(product_id: uuid.UUID, db: Session = Depends(get_db)):
    """Packaging hierarchy of a product, smallest unit first."""
    product = get_product_or_404(db, product_id)
    return product.packaging_units


@router.post(
    "/products/{product_id}/packaging-units",
    response_model=PackagingUnitResponse,
    status_code=status.HTTP_201_CREATED
)
def create_packaging_unit(product_id: uuid.UUID, unit_data: PackagingUnitCreate, db: Session = Depends(get_db)):
    product = get_product_or_404(db, product_id)
    unit = PackagingUnit(product_id=product.id, **unit_data.model_dump())

    check_units([*product.packaging_units, unit], require_base=True)

    product.packaging_units.append(unit)
    db.commit()
    db.refresh(unit)
    return unit


@router.post("/products/{product_id}/packaging-units/apply-template", response_model=list[PackagingUnitResponse])
def apply_packaging_template(product_id: uuid.UUID, request: ApplyTemplateRequest, db: Session = Depends(get_db)):
    """Replace the product's packaging units with a copy of a template."""
    product = get_product_or_404(db, product_id)
    units = apply_template(db, product, request.template_name)
    db.commit()
    for unit in units:
        db.refresh(unit)
    return units


@router.get("/products/{product_id}/convert", response_model=ConversionResponse)
def convert_quantity(
    product_id: uuid.UUID,
    quantity: int = Query(..., ge=0),
    packaging_unit_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db)
):
    """Convert a quantity in one of the product's units into strips."""
    product = get_product_or_404(db, product_id)

    unit = None
    if packaging_unit_id is not None:
        unit = _get_unit(db, packaging_unit_id)
        if unit.product_id != product.id:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Packaging unit does not belong to this product"
            )

    factor = unit.conversion_factor_to_strips if unit else 1
    return ConversionResponse(
        quantity=quantity,
        unit_name=unit.unit_name if unit else None,
        conversion_factor_to_strips=factor,
        quantity_strips=to_strips(quantity, factor)
    )


@router.put("/packaging-units/{unit_id}", response_model=PackagingUnitResponse)
def update_packaging_unit(unit_id: uuid.UUID, unit_data: PackagingUnitUpdate, db: Session = Depends(get_db)):
    unit = _get_unit(db, unit_id)
    for field, value in unit_data.model_dump(exclude_unset=True).items():
        setattr(unit, field, value)

    check_units(unit.product.packaging_units, require_base=True)

    db.commit()
    db.refresh(unit)
    return unit


@router.delete("/packaging-units/{unit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_packaging_unit(unit_id: uuid.UUID, db: Session = Depends(get_db)):
    """Remove a unit. Ledger quantities are stored in strips and are not affected."""
    unit = _get_unit(db, unit_id)
    check_units([u for u in unit.product.packaging_units if u.id != unit.id], require_base=True)

    db.delete(unit)
    db.commit()
    return None


@router.get("/packaging-templates", response_model=list[PackagingTemplateGroup])
def list_packaging_templates(db: Session = Depends(get_db)):
    rows = db.execute(
        select(PackagingTemplate).order_by(PackagingTemplate.template_name, PackagingTemplate.order_in_hierarchy)
    ).scalars().all()

    groups: dict[str, list[PackagingTemplate]] = {}
    for row in rows:
        groups.setdefault(row.template_name, []).append(row)

    return [PackagingTemplateGroup(template_name=name, units=units) for name, units in groups.items()]


@router.post("/packaging-templates", response_model=PackagingTemplateResponse, status_code=status.HTTP_201_CREATED)
def create_packaging_template_unit(template_data: PackagingTemplateCreate, db: Session = Depends(get_db)):
    """Add one unit row to a (new or existing) named template."""
    existing = db.execute(
        select(PackagingTemplate).where(PackagingTemplate.template_name == template_data.template_name)
    ).scalars().all()
    if any(row.unit_name.lower() == template_data.unit_name.lower() for row in existing):
        raise DuplicateResourceError(
            f"Packaging template '{template_data.template_name}'", "unit", template_data.unit_name
        )

    row = PackagingTemplate(**template_data.model_dump())
    check_units([*existing, row])

    db.add(row)
    db.commit()
    db.refresh(row)
    return row


@router.delete("/packaging-templates/{template_unit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_packaging_template_unit(template_unit_id: uuid.UUID, db: Session = Depends(get_db)):
    """Remove one unit row from a template. Units already copied to products are kept."""
    row = db.get(PackagingTemplate, template_unit_id)
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Packaging template unit not found"
        )
    db.delete(row)
    db.commit()
    return None
