"""
Packaging templates and per-product packaging units.
"""
from sqlalchemy import select
from sqlalchemy.orm import Session

from pharmastock.error_handlers import BusinessRuleError, ResourceNotFoundError
from pharmastock.logging_config import get_logger
from pharmastock.models.product import PackagingTemplate, PackagingUnit, Product
from pharmastock.packaging import validate_hierarchy

logger = get_logger("packaging")

# (template, unit, strips per unit, is base, order)
DEFAULT_TEMPLATES = [
    ("Standard Pharma", "Strip", 1, True, 1),
    ("Standard Pharma", "Box", 10, False, 2),
    ("Standard Pharma", "Carton", 100, False, 3),
    ("Tablet Packaging", "Strip", 1, True, 1),
    ("Tablet Packaging", "Box", 10, False, 2),
    ("Tablet Packaging", "Case", 50, False, 3),
    ("Liquid Medicine", "Bottle", 1, True, 1),
    ("Liquid Medicine", "Pack", 6, False, 2),
    ("Liquid Medicine", "Carton", 24, False, 3),
]


def seed_packaging_templates(db: Session) -> int:
    """Insert the default templates that are missing. Returns rows added."""
    existing = {
        (t.template_name, t.unit_name)
        for t in db.execute(select(PackagingTemplate)).scalars().all()
    }
    added = 0
    for template_name, unit_name, factor, is_base, order in DEFAULT_TEMPLATES:
        if (template_name, unit_name) in existing:
            continue
        db.add(PackagingTemplate(
            template_name=template_name,
            unit_name=unit_name,
            conversion_factor_to_strips=factor,
            is_base_unit=is_base,
            order_in_hierarchy=order,
        ))
        added += 1
    if added:
        db.commit()
        logger.info(f"[PACKAGING] Seeded {added} packaging template rows")
    return added


def template_units(db: Session, template_name: str) -> list[PackagingTemplate]:
    return list(db.execute(
        select(PackagingTemplate)
        .where(PackagingTemplate.template_name == template_name)
        .order_by(PackagingTemplate.order_in_hierarchy)
    ).scalars().all())


def check_units(units, require_base: bool = False) -> None:
    problems = validate_hierarchy(units, require_base=require_base)
    if problems:
        raise BusinessRuleError("Invalid packaging hierarchy", errors=problems)


def apply_template(db: Session, product: Product, template_name: str) -> list[PackagingUnit]:
    """
    Replace the product's packaging units with copies of a template's rows.

    The first unit of the template becomes the default for purchases and
    both kinds of sales. The caller commits.
    """
    rows = template_units(db, template_name)
    if not rows:
        raise ResourceNotFoundError("PackagingTemplate", template_name)
    check_units(rows, require_base=True)

    product.packaging_units.clear()
    db.flush()

    for index, row in enumerate(rows):
        product.packaging_units.append(PackagingUnit(
            template_id=row.id,
            unit_name=row.unit_name,
            conversion_factor_to_strips=row.conversion_factor_to_strips,
            is_base_unit=row.is_base_unit,
            order_in_hierarchy=row.order_in_hierarchy,
            default_purchase_unit=index == 0,
            default_sales_unit_mr=index == 0,
            default_sales_unit_direct=index == 0,
        ))
    db.flush()

    logger.info(f"[PACKAGING] Applied template '{template_name}' to product {product.product_code} ({len(rows)} units)")
    return list(product.packaging_units)
