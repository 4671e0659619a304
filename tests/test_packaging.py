"""Tests for packaging conversion and hierarchy checks."""
import pytest
from types import SimpleNamespace

from pharmastock.packaging import to_strips, validate_hierarchy


def unit(name, factor, base=False, order=1):
    return SimpleNamespace(
        unit_name=name, conversion_factor_to_strips=factor, is_base_unit=base, order_in_hierarchy=order
    )


class TestConversion:
    """Tests for quantity conversion into strips."""

    def test_no_unit_means_strips(self):
        assert to_strips(7) == 7

    def test_box_of_ten(self):
        assert to_strips(3, 10) == 30

    def test_zero_quantity(self):
        assert to_strips(0, 10) == 0

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValueError):
            to_strips(-1, 10)

    def test_zero_factor_rejected(self):
        with pytest.raises(ValueError):
            to_strips(5, 0)


class TestHierarchy:
    """Tests for packaging hierarchy validation."""

    def test_standard_hierarchy_valid(self):
        units = [unit("Strip", 1, base=True, order=1), unit("Box", 10, order=2), unit("Carton", 100, order=3)]
        assert validate_hierarchy(units) == []

    def test_empty_hierarchy_valid(self):
        assert validate_hierarchy([]) == []

    def test_duplicate_names(self):
        problems = validate_hierarchy([unit("Strip", 1, base=True), unit("strip", 10, order=2)])
        assert any("Duplicate" in p for p in problems)

    def test_two_base_units(self):
        problems = validate_hierarchy([unit("Strip", 1, base=True), unit("Bottle", 1, base=True, order=2)])
        assert any("one base unit" in p for p in problems)

    def test_missing_base_unit(self):
        assert validate_hierarchy([unit("Box", 10, order=2)]) != []

    def test_missing_base_allowed_while_building(self):
        assert validate_hierarchy([unit("Box", 10, order=2)], require_base=False) == []

    def test_base_unit_factor_must_be_one(self):
        problems = validate_hierarchy([unit("Strip", 2, base=True)])
        assert any("factor of 1" in p for p in problems)
