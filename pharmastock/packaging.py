"""
Packaging unit conversion.

All stock is stored in the smallest unit (a strip for most products). A
packaging unit such as a box or carton carries the number of strips it
contains; the base unit has a factor of 1.
"""
from typing import Iterable, Optional


def to_strips(quantity: int, conversion_factor: Optional[int] = None) -> int:
    """
    Convert a quantity entered in some packaging unit into strips.

    No selected unit means the quantity is already in strips.
    """
    factor = 1 if conversion_factor is None else conversion_factor
    if quantity < 0:
        raise ValueError(f"Quantity cannot be negative: {quantity}")
    if factor < 1:
        raise ValueError(f"Conversion factor must be at least 1: {factor}")
    return quantity * factor


def validate_hierarchy(units: Iterable, require_base: bool = True) -> list[str]:
    """
    Check a product's packaging units as a whole.

    ``units`` are objects with ``unit_name``, ``conversion_factor_to_strips``,
    ``is_base_unit`` and ``order_in_hierarchy``. An empty hierarchy is valid
    (the product is handled in strips only). With ``require_base`` off, a
    hierarchy still being built may lack its base unit. Returns a list of
    problems; empty when the hierarchy is consistent.
    """
    units = list(units)
    if not units:
        return []

    problems = []
    names = [u.unit_name.strip().lower() for u in units]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        problems.append(f"Duplicate unit names: {', '.join(duplicates)}")

    for u in units:
        if u.conversion_factor_to_strips < 1:
            problems.append(f"{u.unit_name}: conversion factor must be at least 1")
        if u.order_in_hierarchy < 1:
            problems.append(f"{u.unit_name}: hierarchy order must be at least 1")

    base_units = [u for u in units if u.is_base_unit]
    if len(base_units) == 0:
        if require_base:
            problems.append("Exactly one base unit is required, found none")
    elif len(base_units) > 1:
        problems.append(f"Only one base unit per product is allowed, found {len(base_units)}")
    else:
        if base_units[0].conversion_factor_to_strips != 1:
            problems.append(f"Base unit {base_units[0].unit_name} must have a conversion factor of 1")

    return problems
